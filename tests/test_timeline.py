from datetime import datetime, timedelta, timezone

from backend.app.timeline import build_timeline

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


def ev(event_id, event_type, days_ago):
    return {
        "id": event_id,
        "event_type": event_type,
        "item_id": 1,
        "object_id": None,
        "payload": {},
        "created_at": (NOW - timedelta(days=days_ago)).isoformat(),
    }


def steps_by_key(tl):
    return {s["step_key"]: s for s in tl["steps"]}


def test_empty_furniture_timeline():
    tl = build_timeline({"id": 1, "timeline_type": "furniture_6_step"}, [], now=NOW)
    assert [s["step_number"] for s in tl["steps"]] == [1, 2, 3, 4, 5, 6]
    assert all(s["status"] == "pending" and not s["is_delayed"] for s in tl["steps"])
    assert tl["total_estimated_days"] == 35


def test_sourcing_timeline_progress():
    events = [ev(1, "rfq_submitted", 20), ev(2, "bid_awarded", 10), ev(3, "payment_marked_received", 2)]
    tl = build_timeline({"id": 1, "timeline_type": "sourcing_4_step"}, events, now=NOW)
    steps = steps_by_key(tl)
    assert tl["total_estimated_days"] == 43
    assert steps["sourcing"]["status"] == "completed"
    assert steps["production_procurement"]["status"] == "in_progress"
    assert steps["quality_check"]["status"] == "pending"


def test_overdue_step_is_delayed():
    events = [ev(1, "cad_prototype_requested", 9)]
    tl = build_timeline({"id": 1, "timeline_type": "furniture_6_step"}, events, now=NOW)
    first = tl["steps"][0]
    assert first["status"] == "in_progress"
    assert first["is_delayed"] is True
    assert first["display_status"] == "delayed"


def test_completed_step_is_never_delayed():
    events = [ev(2, "payment_marked_received", 1), ev(1, "cad_prototype_requested", 30)]
    first = build_timeline({"id": 1, "timeline_type": "furniture_6_step"}, events, now=NOW)["steps"][0]
    assert first["status"] == "completed"
    assert not first["is_delayed"]
    assert [e["event_type"] for e in first["evidence"]] == ["cad_prototype_requested", "payment_marked_received"]


def test_missing_type_defaults_to_furniture():
    tl = build_timeline({"id": 5}, [], now=NOW)
    assert tl["timeline_type"] == "furniture_6_step"
    assert tl["item_id"] == 5
