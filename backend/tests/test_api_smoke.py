from checkmate.api.sweep import get_sender
from checkmate.core.config import settings
from checkmate.main import app
from checkmate.services.penalty import LoggingPenaltySender


def _create_goal(client, **overrides):
    payload = {
        "user_id": "user-1",
        "title": "Morning pages",
        "description": "",
        "recurrence": {"kind": "daily"},
        "checkins_per_day": 1,
        "start_date": "2024-06-01",
        "end_date": "2024-06-03",
        "reset_time": "18:00",
    }
    payload.update(overrides)
    return client.post("/goals/", json=payload)


def test_root_ok(client):
    r = client.get("/")
    assert r.status_code == 200
    data = r.json()
    assert "message" in data


def test_create_and_list_goal(client):
    cr = _create_goal(client)
    assert cr.status_code == 200, cr.text
    goal = cr.json()
    assert goal["recurrence"]["kind"] == "daily"
    assert goal["recurrence"]["label"] == "Every day"
    assert goal["reset_time"] == "18:00"
    assert goal["effective_end_date"] == "2024-06-03"

    lr = client.get("/goals/", params={"user_id": "user-1", "now": "2024-06-02T09:00:00"})
    assert lr.status_code == 200
    arr = lr.json()
    assert [g["title"] for g in arr] == ["Morning pages"]
    assert arr[0]["progress"] == {
        "state": "in_progress",
        "done": 0,
        "required": 1,
        "next_active_date": None,
        "period_key": None,
        "deadline": None,
    }


def test_checkin_and_progress(client):
    goal_id = _create_goal(client, checkins_per_day=2).json()["id"]
    noon = {"now": "2024-06-02T12:00:00"}

    r = client.put(f"/goals/{goal_id}/checkins/2024-06-02", json={"count": 2}, params=noon)
    assert r.status_code == 200, r.text
    assert r.json()["count"] == 2

    pr = client.get(f"/goals/{goal_id}/progress", params=noon)
    assert pr.json()["state"] == "satisfied"

    # overwrite, not accumulate
    client.put(f"/goals/{goal_id}/checkins/2024-06-02", json={"count": 1}, params=noon)
    pr = client.get(f"/goals/{goal_id}/progress", params={"now": "2024-06-02T12:00:00"})
    assert pr.json()["state"] == "in_progress"
    assert pr.json()["done"] == 1

    wk = client.get(f"/goals/{goal_id}/checkins/week", params={"day": "2024-06-04"})
    assert wk.json()["week_start"] == "2024-06-02"
    assert wk.json()["total"] == 1

    lr = client.get(f"/goals/{goal_id}/checkins", params={"start_date": "2024-06-01", "end_date": "2024-06-03"})
    assert lr.json() == [{"goal_id": goal_id, "day": "2024-06-02", "count": 1}]


def test_validation_errors(client):
    r = _create_goal(client, recurrence={"kind": "custom_days", "days": []})
    assert r.status_code == 422
    r = _create_goal(client, end_date="2024-05-01")
    assert r.status_code == 422
    r = _create_goal(client, reset_time="noonish")
    assert r.status_code == 422

    goal_id = _create_goal(client).json()["id"]
    r = client.put(f"/goals/{goal_id}/checkins/2024-06-02", json={"count": 2}, params={"now": "2024-06-02T12:00:00"})
    assert r.status_code == 422
    r = client.put(f"/goals/{goal_id}/checkins/2024-06-03", json={"count": 1}, params={"now": "2024-06-02T12:00:00"})
    assert r.status_code == 422
    assert "future" in r.json()["detail"]
    r = client.put(f"/goals/{goal_id}/checkins/2024-06-05", json={"count": 1}, params={"now": "2024-06-10T12:00:00"})
    assert r.status_code == 422
    assert "not active" in r.json()["detail"]


def test_checkin_rejected_once_period_closed(client):
    goal_id = _create_goal(client).json()["id"]

    # yesterday cannot be back-filled
    r = client.put(f"/goals/{goal_id}/checkins/2024-06-01", json={"count": 1}, params={"now": "2024-06-02T09:00:00"})
    assert r.status_code == 422
    assert "closed" in r.json()["detail"]

    # today closes at the 18:00 reset
    ok = client.put(f"/goals/{goal_id}/checkins/2024-06-02", json={"count": 1}, params={"now": "2024-06-02T17:59:00"})
    assert ok.status_code == 200, ok.text
    late = client.put(f"/goals/{goal_id}/checkins/2024-06-02", json={"count": 0}, params={"now": "2024-06-02T18:00:00"})
    assert late.status_code == 422

    lr = client.get(f"/goals/{goal_id}/checkins", params={"start_date": "2024-06-01", "end_date": "2024-06-03"})
    assert lr.json() == [{"goal_id": goal_id, "day": "2024-06-02", "count": 1}]


def test_update_and_delete_goal(client):
    goal_id = _create_goal(client).json()["id"]

    ur = client.put(
        f"/goals/{goal_id}",
        json={"recurrence": {"kind": "x_per_week", "count": 2, "any_days": False, "days": [2, 4]}, "end_date": None},
    )
    assert ur.status_code == 200, ur.text
    body = ur.json()
    assert body["recurrence"]["days"] == [2, 4]
    assert body["end_date"] is None
    assert body["effective_end_date"] == "2025-06-01"

    bad = client.put(f"/goals/{goal_id}", json={"recurrence": {"kind": "x_per_week", "count": 9}})
    assert bad.status_code == 422

    nr = client.get(f"/goals/{goal_id}/next_active", params={"after": "2024-06-04"})
    assert nr.json()["next_active_date"] == "2024-06-06"

    dr = client.delete(f"/goals/{goal_id}")
    assert dr.status_code == 200
    assert client.get(f"/goals/{goal_id}").status_code == 404


def test_nightly_check_is_idempotent(client):
    sender = LoggingPenaltySender()
    app.dependency_overrides[get_sender] = lambda: sender
    _create_goal(client)
    client.put("/profiles/user-1", json={"instagram_username": "@pawnstorm"})

    first = client.post("/sweep/nightly-check", params={"now": "2024-06-02T19:00:00"})
    assert first.status_code == 200, first.text
    assert first.json()["processed_count"] == 1
    assert first.json()["penalized"] == 1
    assert sender.sent[0].period_key == "2024-06-01"
    assert sender.sent[0].instagram_username == "pawnstorm"

    second = client.post("/sweep/nightly-check", params={"now": "2024-06-02T19:00:00"})
    assert second.json()["penalized"] == 0
    assert len(sender.sent) == 1


def test_nightly_check_requires_token_when_configured(client, monkeypatch):
    app.dependency_overrides[get_sender] = LoggingPenaltySender
    monkeypatch.setattr(settings, "sweep_token", "s3cret")

    assert client.post("/sweep/nightly-check").status_code == 401
    ok = client.post("/sweep/nightly-check", headers={"X-Sweep-Token": "s3cret"})
    assert ok.status_code == 200


def test_profile_upsert(client):
    r = client.put("/profiles/user-9", json={"instagram_username": "first"})
    assert r.status_code == 200
    client.put("/profiles/user-9", json={"instagram_username": "second"})
    assert client.get("/profiles/user-9").json()["instagram_username"] == "second"
    assert client.get("/profiles/nobody").status_code == 404
