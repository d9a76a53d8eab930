# state.py
# Item workflow macro state, editability, and the reducer that owns the local snapshot.
#
# The snapshot is only ever replaced wholesale. Intents never patch it; they mark
# the state as needing a refresh. The one exception is the optimistic A -> B step
# after an RFQ is accepted, which is held as a Provisional view until the next
# confirmed fetch.

import copy
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Optional, Union

from .snapshot import ItemSnapshot, Timeline

logger = logging.getLogger("itemflow.workflow")


class MacroState(str, Enum):
    A = "A"  # pre-RFQ, fully editable
    B = "B"  # RFQ issued, no bids yet
    C = "C"  # bids exist


def derive_macro_state(has_rfq: bool, has_bids: bool) -> MacroState:
    # has_bids wins even if has_rfq was revoked underneath it
    if has_bids:
        return MacroState.C
    if has_rfq:
        return MacroState.B
    return MacroState.A


def snapshot_macro_state(snapshot: ItemSnapshot) -> MacroState:
    return derive_macro_state(snapshot.rfq.has_rfq, snapshot.has_bids)


FULL_ITEM_FIELDS: FrozenSet[str] = frozenset({
    "category",
    "description",
    "quantity",
    "dims",
    "delivery_country",
    "delivery_postal_code",
    "keywords",
    "inspiration",
    "smart_alternatives",
    "smart_alternatives_note",
    "supplier_notes",
})

POST_RFQ_FIELDS: FrozenSet[str] = frozenset({"dims", "quantity", "supplier_notes"})


def editable_fields(macro_state: MacroState, has_payment: bool) -> FrozenSet[str]:
    if has_payment:
        return frozenset()
    if macro_state == MacroState.A:
        return FULL_ITEM_FIELDS
    return POST_RFQ_FIELDS


def snapshot_editable_fields(snapshot: ItemSnapshot) -> FrozenSet[str]:
    return editable_fields(snapshot_macro_state(snapshot), snapshot.payment is not None)


# --- reducer ---

class EventType(str, Enum):
    ITEM_OPENED = "ITEM_OPENED"
    ITEM_CLOSED = "ITEM_CLOSED"
    STATE_REFRESHED = "STATE_REFRESHED"
    TIMELINE_REFRESHED = "TIMELINE_REFRESHED"
    RFQ_SUBMITTED = "RFQ_SUBMITTED"
    ITEM_UPDATED = "ITEM_UPDATED"
    BID_AWARDED = "BID_AWARDED"
    CAD_PROTOTYPE_REQUESTED = "CAD_PROTOTYPE_REQUESTED"
    CAD_REVISION_REQUESTED = "CAD_REVISION_REQUESTED"
    CAD_APPROVED = "CAD_APPROVED"
    PROTOTYPE_APPROVED = "PROTOTYPE_APPROVED"
    PROTOTYPE_CHANGES_REQUESTED = "PROTOTYPE_CHANGES_REQUESTED"
    INTENT_FAILED = "INTENT_FAILED"


# intents whose success only means "go fetch the truth"
_CONFIRMED_INTENTS = frozenset({
    EventType.ITEM_UPDATED,
    EventType.BID_AWARDED,
    EventType.CAD_PROTOTYPE_REQUESTED,
    EventType.CAD_REVISION_REQUESTED,
    EventType.CAD_APPROVED,
    EventType.PROTOTYPE_APPROVED,
    EventType.PROTOTYPE_CHANGES_REQUESTED,
})


@dataclass(frozen=True)
class Event:
    type: EventType
    item_id: Optional[int] = None
    snapshot: Optional[ItemSnapshot] = None
    timeline: Optional[Timeline] = None
    message: Optional[str] = None
    needs_refresh: bool = True


@dataclass(frozen=True)
class Provisional:
    snapshot: ItemSnapshot
    reason: str
    kind: str = "provisional"


@dataclass(frozen=True)
class Confirmed:
    snapshot: ItemSnapshot
    fetched_at: str
    kind: str = "confirmed"


View = Union[Provisional, Confirmed]


@dataclass(frozen=True)
class WorkflowState:
    item_id: Optional[int] = None
    view: Optional[View] = None
    timeline: Optional[Timeline] = None
    needs_refresh: bool = False
    last_error: Optional[str] = None
    last_event: Optional[EventType] = None

    @property
    def snapshot(self) -> Optional[ItemSnapshot]:
        return self.view.snapshot if self.view else None

    @property
    def is_provisional(self) -> bool:
        return isinstance(self.view, Provisional)

    @property
    def macro_state(self) -> Optional[MacroState]:
        snap = self.snapshot
        return snapshot_macro_state(snap) if snap else None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _for_other_item(state: WorkflowState, event: Event) -> bool:
    if state.item_id is None or event.item_id != state.item_id:
        logger.debug("discarding %s for item %s (current item %s)", event.type.value, event.item_id, state.item_id)
        return True
    return False


def reduce(state: WorkflowState, event: Event) -> WorkflowState:
    if event.type == EventType.ITEM_OPENED:
        return WorkflowState(item_id=event.item_id, needs_refresh=True, last_event=event.type)

    if event.type == EventType.ITEM_CLOSED:
        return WorkflowState(last_event=event.type)

    if _for_other_item(state, event):
        return state

    if event.type == EventType.STATE_REFRESHED:
        snap = event.snapshot
        if snap is None or snap.item_id != state.item_id:
            logger.debug("discarding snapshot that does not belong to item %s", state.item_id)
            return state
        return replace(
            state,
            view=Confirmed(snapshot=snap, fetched_at=_now()),
            needs_refresh=False,
            last_error=None,
            last_event=event.type,
        )

    if event.type == EventType.TIMELINE_REFRESHED:
        return replace(state, timeline=event.timeline, last_event=event.type)

    if event.type == EventType.RFQ_SUBMITTED:
        if state.snapshot is None:
            return replace(state, needs_refresh=True, last_error=None, last_event=event.type)
        guess = copy.deepcopy(state.snapshot)
        guess.rfq = replace(guess.rfq, has_rfq=True)
        return replace(
            state,
            view=Provisional(snapshot=guess, reason="rfq submitted"),
            needs_refresh=True,
            last_error=None,
            last_event=event.type,
        )

    if event.type in _CONFIRMED_INTENTS:
        return replace(state, needs_refresh=True, last_error=None, last_event=event.type)

    if event.type == EventType.INTENT_FAILED:
        return replace(
            state,
            needs_refresh=state.needs_refresh or event.needs_refresh,
            last_error=event.message,
            last_event=event.type,
        )

    raise ValueError(f"Unhandled workflow event: {event.type}")
