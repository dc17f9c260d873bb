"""Run the miss sweep in-process (for schedulers with direct DB access).

    python scripts/run_sweep.py
    python scripts/run_sweep.py --now 2024-06-02T19:00
"""

import argparse
import json
import logging
from datetime import datetime

from checkmate.core.config import settings
from checkmate.core.time_utils import as_local_naive, local_now
from checkmate.db import SessionLocal
from checkmate.engine.sweep import run_sweep


def main() -> None:
    ap = argparse.ArgumentParser(description="Penalize goals whose last closed period was missed")
    ap.add_argument("--now", help="Override wall-clock time (ISO 8601, local time if naive)")
    args = ap.parse_args()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.now:
        now = as_local_naive(datetime.fromisoformat(args.now), settings.timezone)
    else:
        now = local_now(settings.timezone)

    db = SessionLocal()
    try:
        summary = run_sweep(db, now)
    finally:
        db.close()

    print(json.dumps(summary.as_dict()))


if __name__ == "__main__":
    main()
