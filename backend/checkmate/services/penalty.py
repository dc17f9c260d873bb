"""Penalty delivery.

The sweep hands a `PenaltyEvent` to a sender and only records the miss once
`send` returns. Senders raise `PenaltyDeliveryError` when delivery was not
accepted so the sweep can retry.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

import httpx

from checkmate.core.config import settings
from checkmate.core.errors import PenaltyDeliveryError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PenaltyEvent:
    goal_id: int
    user_id: str
    title: str
    period_key: str
    deadline: datetime
    instagram_username: Optional[str] = None

    def to_payload(self) -> dict:
        payload = asdict(self)
        payload["deadline"] = self.deadline.isoformat()
        return payload


class LoggingPenaltySender:
    """Logs the would-be penalty post instead of publishing it."""

    def __init__(self):
        self.sent: list[PenaltyEvent] = []

    def send(self, event: PenaltyEvent) -> None:
        logger.info("[PENALTY] Would penalize: %s", event.to_payload())
        self.sent.append(event)


class WebhookPenaltySender:
    """POSTs the penalty payload as JSON to an external publisher."""

    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.url = url
        self.timeout = timeout
        self._client = client

    def send(self, event: PenaltyEvent) -> None:
        payload = event.to_payload()
        try:
            if self._client is not None:
                r = self._client.post(self.url, json=payload)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    r = client.post(self.url, json=payload)
            r.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise PenaltyDeliveryError(
                f"Penalty for goal {event.goal_id} ({event.period_key}) not accepted: {e}"
            ) from e
        logger.info("Penalty delivered: goal=%s period=%s", event.goal_id, event.period_key)


def get_penalty_sender():
    if settings.penalty_webhook_url:
        return WebhookPenaltySender(settings.penalty_webhook_url, timeout=settings.penalty_timeout_seconds)
    return LoggingPenaltySender()
