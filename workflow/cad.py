# cad.py
# CAD drawing cycle: none -> uploaded -> (revision_requested <-> uploaded) -> approved -> released.
#
# The apply_* functions are the transitions themselves and are shared with the
# backend; the intent functions check them locally before any network call.

from dataclasses import replace
from typing import Any, Dict, List, Optional

from .award import require_payment_received
from .errors import ClientValidationError, InvalidTransition
from .snapshot import CadState, ItemSnapshot

REVISION_FROM = ("uploaded", "revision_requested")


def can_request_revision(cad: CadState) -> bool:
    return cad.status in REVISION_FROM


def can_approve(cad: CadState) -> bool:
    return (
        cad.status == "uploaded"
        and cad.current_version > 0
        and cad.approved_version != cad.current_version
    )


def can_release(cad: CadState) -> bool:
    return cad.status == "approved"


def apply_upload(cad: CadState) -> CadState:
    if cad.status in ("approved", "released"):
        raise InvalidTransition("CAD is already approved; no further uploads in this cycle.")
    return replace(cad, status="uploaded", current_version=cad.current_version + 1)


def apply_revision_request(cad: CadState) -> CadState:
    if cad.status in ("approved", "released"):
        raise InvalidTransition("CAD is already approved and can no longer be revised.")
    if not can_request_revision(cad):
        raise InvalidTransition("There is no CAD upload to revise yet.")
    return replace(cad, status="revision_requested", revision_rounds_used=cad.revision_rounds_used + 1)


def apply_approve(cad: CadState) -> CadState:
    if not can_approve(cad):
        if cad.approved_version is not None and cad.approved_version == cad.current_version:
            raise InvalidTransition(f"CAD version {cad.current_version} is already approved.")
        raise InvalidTransition("Only an uploaded, unapproved CAD version can be approved.")
    return replace(cad, status="approved", approved_version=cad.current_version)


def apply_release(cad: CadState, released_at: str) -> CadState:
    if cad.status == "released":
        raise InvalidTransition("CAD has already been released to the supplier.")
    if not can_release(cad):
        raise InvalidTransition("CAD must be approved before it is released to the supplier.")
    return replace(cad, status="released", released_to_supplier_at=released_at)


def check_attachments(files: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    if not files:
        raise ClientValidationError("Attach at least one file to request a CAD revision.")
    for f in files:
        if not isinstance(f, dict) or not f.get("name"):
            raise ClientValidationError("Every attachment needs a file name.")
    return list(files)


def request_revision(client, snapshot: ItemSnapshot, files, note: str = "") -> Dict[str, Any]:
    files = check_attachments(files)
    payment = require_payment_received(snapshot)
    apply_revision_request(snapshot.cad)
    return client.request_cad_revision(payment.id, snapshot.item_id, files, note=note)


def approve(client, snapshot: ItemSnapshot) -> Dict[str, Any]:
    payment = require_payment_received(snapshot)
    apply_approve(snapshot.cad)
    return client.approve_cad(payment.id, snapshot.item_id)
