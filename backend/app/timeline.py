# timeline.py
# Read-only production timeline for an item, derived from its event log.

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from workflow.classification import FURNITURE_6_STEP, SOURCING_4_STEP

# (step_key, label, estimated_days, start events, complete events)
FURNITURE_STEPS = [
    ("design_specifications", "Design & Specifications", 7,
     ("cad_prototype_requested",), ("payment_marked_received",)),
    ("technical_review", "Technical Review & Documentation", 10,
     ("cad_uploaded",), ("cad_approved",)),
    ("pre_production_approval", "Pre-Production Approval", 5,
     ("cad_approved",), ("prototype_video_approved",)),
    ("production_fabrication", "Production / Fabrication", 8, (), ()),
    ("quality_review_packing", "Quality Review & Packing", 2, (), ()),
    ("ready_for_delivery", "Ready for Delivery", 3, (), ()),
]

SOURCING_STEPS = [
    ("sourcing", "Sourcing", 14, ("rfq_submitted",), ("bid_awarded",)),
    ("production_procurement", "Production / Procurement", 21,
     ("payment_marked_received",), ("prototype_video_approved",)),
    ("quality_check", "Quality Check", 3, (), ()),
    ("packing_delivery", "Packing & Delivery", 5, (), ()),
]

STEPS_BY_TYPE = {
    FURNITURE_6_STEP: FURNITURE_STEPS,
    SOURCING_4_STEP: SOURCING_STEPS,
}


def _first(events: List[Dict[str, Any]], types) -> Optional[Dict[str, Any]]:
    return next((e for e in events if e["event_type"] in types), None)


def _is_delayed(started_at: Optional[str], completed_at: Optional[str], estimated_days: int,
                now: datetime) -> bool:
    if not started_at or completed_at:
        return False
    started = datetime.fromisoformat(started_at)
    return started + timedelta(days=estimated_days) < now


def build_timeline(item: Dict[str, Any], events: List[Dict[str, Any]],
                   now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    ttype = item.get("timeline_type") or FURNITURE_6_STEP
    events = sorted(events, key=lambda e: e["id"])

    steps = []
    for number, (key, label, days, start_types, done_types) in enumerate(STEPS_BY_TYPE[ttype], start=1):
        started = _first(events, start_types)
        completed = _first(events, done_types)
        started_at = started["created_at"] if started else None
        completed_at = completed["created_at"] if completed else None
        if completed_at and not started_at:
            started_at = completed_at

        if completed_at:
            status = "completed"
        elif started_at:
            status = "in_progress"
        else:
            status = "pending"
        delayed = _is_delayed(started_at, completed_at, days, now)

        evidence = [
            {"event_type": e["event_type"], "created_at": e["created_at"], "payload": e["payload"]}
            for e in events if e["event_type"] in start_types + done_types
        ]
        steps.append({
            "step_number": number,
            "step_key": key,
            "label": label,
            "status": status,
            "display_status": "delayed" if delayed else status,
            "started_at": started_at,
            "completed_at": completed_at,
            "estimated_days": days,
            "is_delayed": delayed,
            "evidence": evidence,
        })

    return {
        "item_id": item["id"],
        "timeline_type": ttype,
        "steps": steps,
        "total_estimated_days": sum(s["estimated_days"] for s in steps),
    }
