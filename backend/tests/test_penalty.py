import json
from datetime import datetime

import httpx
import pytest

from checkmate.core.errors import PenaltyDeliveryError
from checkmate.services.penalty import (
    LoggingPenaltySender,
    PenaltyEvent,
    WebhookPenaltySender,
    get_penalty_sender,
)

EVENT = PenaltyEvent(
    goal_id=4,
    user_id="user-1",
    title="Morning pages",
    period_key="2024-06-01",
    deadline=datetime(2024, 6, 2, 18, 0),
    instagram_username="pawnstorm",
)


def test_webhook_posts_payload():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(202)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    WebhookPenaltySender("https://publisher.test/penalties", client=client).send(EVENT)

    assert seen == [{
        "goal_id": 4,
        "user_id": "user-1",
        "title": "Morning pages",
        "period_key": "2024-06-01",
        "deadline": "2024-06-02T18:00:00",
        "instagram_username": "pawnstorm",
    }]


def test_webhook_rejection_raises():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    sender = WebhookPenaltySender("https://publisher.test/penalties", client=client)
    with pytest.raises(PenaltyDeliveryError):
        sender.send(EVENT)


def test_malformed_webhook_url_raises_delivery_error():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(202)))
    sender = WebhookPenaltySender("https://publisher.test/\x01penalties", client=client)
    with pytest.raises(PenaltyDeliveryError):
        sender.send(EVENT)


def test_sender_chosen_from_settings(monkeypatch):
    from checkmate.core.config import settings

    monkeypatch.setattr(settings, "penalty_webhook_url", None)
    assert isinstance(get_penalty_sender(), LoggingPenaltySender)

    monkeypatch.setattr(settings, "penalty_webhook_url", "https://publisher.test/penalties")
    sender = get_penalty_sender()
    assert isinstance(sender, WebhookPenaltySender)
    assert sender.url == "https://publisher.test/penalties"
