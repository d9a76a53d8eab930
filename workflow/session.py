# session.py
# ItemSession: issues intents for one open item and keeps the reducer state in step
# with the backend. Every successful intent is followed by a full refresh.

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from . import award as award_flow
from . import cad as cad_flow
from . import prototype as prototype_flow
from . import rfq as rfq_flow
from .errors import (
    BackendRejection,
    ClientValidationError,
    InvalidTransition,
    WorkflowError,
)
from .snapshot import ItemSnapshot, Timeline
from .state import Event, EventType, WorkflowState, reduce, snapshot_editable_fields

logger = logging.getLogger("itemflow.workflow")


class ItemSession:
    def __init__(self, client):
        self.client = client
        self.state = WorkflowState()

    # --- plumbing ---

    def dispatch(self, event: Event) -> WorkflowState:
        self.state = reduce(self.state, event)
        return self.state

    @property
    def snapshot(self) -> Optional[ItemSnapshot]:
        return self.state.snapshot

    def _require_snapshot(self) -> ItemSnapshot:
        snap = self.snapshot
        if snap is None:
            raise ClientValidationError("Item state has not been loaded yet.")
        return snap

    def open(self, item_id: int) -> WorkflowState:
        self.dispatch(Event(EventType.ITEM_OPENED, item_id=item_id))
        return self.refresh()

    def close(self) -> None:
        self.dispatch(Event(EventType.ITEM_CLOSED))

    def refresh(self, include_timeline: bool = True) -> WorkflowState:
        """Fetch the snapshot (and timeline) for the current item and replace local state.

        Both fetches run concurrently; each response is tagged with the item id it
        was requested for, and the reducer drops it if that item is no longer open.
        """
        item_id = self.state.item_id
        if item_id is None:
            raise ClientValidationError("No item is open.")

        with ThreadPoolExecutor(max_workers=2) as pool:
            state_future = pool.submit(self.client.get_item_state, item_id)
            timeline_future = pool.submit(self.client.get_timeline, item_id) if include_timeline else None
            try:
                data = state_future.result()
            except WorkflowError as e:
                self.dispatch(Event(EventType.INTENT_FAILED, item_id=item_id, message=str(e)))
                raise
            timeline_data = None
            if timeline_future is not None:
                try:
                    timeline_data = timeline_future.result()
                except WorkflowError as e:
                    logger.warning("timeline fetch for item %s failed: %s", item_id, e)

        self.dispatch(Event(EventType.STATE_REFRESHED, item_id=item_id, snapshot=ItemSnapshot.from_dict(data)))
        if timeline_data is not None:
            self.dispatch(Event(EventType.TIMELINE_REFRESHED, item_id=item_id,
                                timeline=Timeline.from_dict(timeline_data)))
        return self.state

    def _run(self, event_type: EventType, call: Callable[[], Any]) -> Any:
        item_id = self.state.item_id
        try:
            result = call()
        except ClientValidationError as e:
            self.dispatch(Event(EventType.INTENT_FAILED, item_id=item_id, message=str(e), needs_refresh=False))
            raise
        except BackendRejection as e:
            self.dispatch(Event(EventType.INTENT_FAILED, item_id=item_id, message=e.message))
            self._resync_after_failure()
            raise
        except WorkflowError as e:
            self.dispatch(Event(EventType.INTENT_FAILED, item_id=item_id, message=str(e)))
            raise

        logger.info("%s succeeded for item %s", event_type.value, item_id)
        self.dispatch(Event(event_type, item_id=item_id))
        try:
            self.refresh()
        except WorkflowError as e:
            # the intent went through; refresh already recorded the failure and
            # left needs_refresh set
            logger.warning("refresh after %s for item %s failed: %s", event_type.value, item_id, e)
        return result

    def _resync_after_failure(self) -> None:
        error = self.state.last_error
        try:
            self.refresh()
        except WorkflowError as e:
            logger.warning("resync after rejection failed: %s", e)
            return
        # keep the original rejection visible after the refresh cleared it
        self.dispatch(Event(EventType.INTENT_FAILED, item_id=self.state.item_id, message=error,
                            needs_refresh=False))

    # --- intents ---

    def submit_rfq(self, request: rfq_flow.RFQRequest) -> Dict[str, Any]:
        snap = self._require_snapshot()
        return self._run(EventType.RFQ_SUBMITTED, lambda: rfq_flow.submit(self.client, snap, request))

    def update_item(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        snap = self._require_snapshot()
        allowed = snapshot_editable_fields(snap)

        def call():
            locked = sorted(set(fields) - allowed)
            if locked:
                raise InvalidTransition(f"These fields are locked: {', '.join(locked)}")
            return self.client.update_item(snap.item_id, fields)

        return self._run(EventType.ITEM_UPDATED, call)

    def award(self, bid_id: int) -> Dict[str, Any]:
        snap = self._require_snapshot()
        result = self._run(EventType.BID_AWARDED, lambda: award_flow.award(self.client, snap, bid_id))
        if self.state.needs_refresh:
            return result
        try:
            award_flow.verify_award_applied(self._require_snapshot(), bid_id)
        except BackendRejection as e:
            self.dispatch(Event(EventType.INTENT_FAILED, item_id=self.state.item_id, message=e.message))
            raise
        return result

    def request_cad_prototype(self, bid_id: int) -> Dict[str, Any]:
        snap = self._require_snapshot()
        return self._run(EventType.CAD_PROTOTYPE_REQUESTED,
                         lambda: award_flow.request_cad_prototype(self.client, snap, bid_id))

    def request_cad_revision(self, files: List[Dict[str, Any]], note: str = "") -> Dict[str, Any]:
        snap = self._require_snapshot()
        return self._run(EventType.CAD_REVISION_REQUESTED,
                         lambda: cad_flow.request_revision(self.client, snap, files, note=note))

    def approve_cad(self) -> Dict[str, Any]:
        snap = self._require_snapshot()
        return self._run(EventType.CAD_APPROVED, lambda: cad_flow.approve(self.client, snap))

    def approve_prototype(self) -> Dict[str, Any]:
        snap = self._require_snapshot()
        return self._run(EventType.PROTOTYPE_APPROVED, lambda: prototype_flow.approve(self.client, snap))

    def request_prototype_changes(self, packet) -> Dict[str, Any]:
        snap = self._require_snapshot()
        return self._run(EventType.PROTOTYPE_CHANGES_REQUESTED,
                         lambda: prototype_flow.request_changes(self.client, snap, packet))
