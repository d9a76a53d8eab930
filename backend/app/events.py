# events.py
# Append-only event log. Records are never updated or deleted.

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from . import storage

EVENT_TYPES = (
    "item_created",
    "item_facts_saved",
    "item_facts_updated_after_rfq",
    "rfq_submitted",
    "bid_submitted",
    "bid_withdrawn",
    "bid_awarded",
    "cad_prototype_requested",
    "payment_marked_received",
    "cad_uploaded",
    "cad_revision_requested",
    "cad_approved",
    "cad_released_to_supplier",
    "prototype_video_submitted",
    "prototype_video_changes_requested",
    "prototype_video_approved",
)

MAX_PAYLOAD_SIZE = 10240  # bytes, serialized


def log_event(event_type: str, item_id: int, object_id: Optional[int] = None,
              payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type}")
    payload = payload or {}
    if len(json.dumps(payload, default=str).encode("utf-8")) > MAX_PAYLOAD_SIZE:
        raise ValueError(f"Event payload for {event_type} exceeds {MAX_PAYLOAD_SIZE} bytes")

    event = {
        "id": storage.next_id("events"),
        "event_type": event_type,
        "item_id": item_id,
        "object_id": object_id,
        "payload": payload,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    with storage.transaction("events") as events:
        events.append(event)
    return event


def events_for_item(item_id: int) -> List[Dict[str, Any]]:
    return [e for e in storage.read_json("events") if e.get("item_id") == item_id]
