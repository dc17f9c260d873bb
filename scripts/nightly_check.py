#!/usr/bin/env python3
"""
Trigger the nightly miss sweep on a running Checkmate API.

Intended for cron / a Kubernetes CronJob. Run it at least once a day, shortly
after the reset times your users pick (e.g. 04:15 for a 04:00 reset).

Usage examples:
  - Against a local backend:
      python scripts/nightly_check.py --base-url http://localhost:8000
  - With a shared secret configured as SWEEP_TOKEN on the backend:
      python scripts/nightly_check.py --base-url http://<HOST>/api --token "$SWEEP_TOKEN"
  - Replay a specific moment (testing):
      python scripts/nightly_check.py --base-url http://localhost:8000 --now 2024-06-02T19:00
"""

from __future__ import annotations

import argparse
import json
import sys

try:
    import requests  # type: ignore
except ImportError:  # pragma: no cover
    print("This script requires the 'requests' package.\nInstall with: pip install requests", file=sys.stderr)
    raise


def trigger_sweep(base_url: str, token: str | None = None, now: str | None = None, timeout: float = 600) -> dict:
    url = f"{base_url.rstrip('/')}/sweep/nightly-check"
    headers = {"X-Sweep-Token": token} if token else {}
    params = {"now": now} if now else None
    r = requests.post(url, headers=headers, params=params, timeout=timeout)
    if r.status_code >= 300:
        raise RuntimeError(f"sweep -> HTTP {r.status_code}: {r.text}")
    return r.json()


def main() -> None:
    ap = argparse.ArgumentParser(description="Trigger the nightly missed-goal sweep")
    ap.add_argument("--base-url", required=True, help="API base URL (e.g., http://<IP>/api or http://localhost:8000)")
    ap.add_argument("--token", help="Value for the X-Sweep-Token header")
    ap.add_argument("--now", help="Override the sweep's wall-clock time (ISO 8601)")
    args = ap.parse_args()

    result = trigger_sweep(args.base_url, token=args.token, now=args.now)
    print(json.dumps(result))
    # Non-zero exit lets the scheduler flag partial failures
    if result.get("failed"):
        sys.exit(1)


if __name__ == "__main__":
    main()
