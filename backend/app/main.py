# main.py
# Item workflow API: the single source of truth for RFQ, bids, CAD, prototype and payment state.
from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import List

from workflow.award import apply_award, payment_total_due
from workflow.bids import sort_key
from workflow.calculator import cbm_for_dims, dims_to_cm
from workflow.cad import apply_approve, apply_release, apply_revision_request, apply_upload
from workflow.classification import infer_sourcing_type, timeline_type
from workflow.errors import FeedbackPacketError, InvalidTransition
from workflow.prototype import (
    apply_approve as apply_prototype_approve,
    apply_changes_requested,
    apply_submission,
    parse_packet,
    phrase_total,
    validate_packet,
)
from workflow.rfq import RFQRequest, rfq_problems
from workflow.snapshot import Bid, CadState, PrototypeState
from workflow.state import derive_macro_state, editable_fields

from . import auth, config, events, models, storage, timeline

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("itemflow.backend")

app = FastAPI(title="Item Workflow API (JSON storage)", dependencies=[Depends(auth.require_session)])

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # for local dev only
    allow_methods=["*"],
    allow_headers=["*"],
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ok(message: str, **extra):
    return {"success": True, "message": message, **extra}


def _find(records, item_id: int):
    r = next((x for x in records if x["item"]["id"] == item_id), None)
    if not r:
        raise HTTPException(status_code=404, detail="Item not found")
    return r


def _transition(fn, *args):
    try:
        return fn(*args)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))


def _recompute(item):
    item["dims_cm"] = dims_to_cm(item.get("dims"))
    item["cbm"] = cbm_for_dims(item.get("dims"))
    item["sourcing_type"] = infer_sourcing_type(item.get("category"), item.get("description"))
    item["timeline_type"] = timeline_type(item["sourcing_type"])
    return item


def _has_bids(record) -> bool:
    return any(b["status"] == "submitted" for b in record["bids"])


def _awarded_bid_id(record):
    return next((b["bid_id"] for b in record["bids"] if b["is_awarded"]), None)


def _payment_bid_id(record):
    return record["payment"]["bid_id"] if record["payment"] else None


def _payment_view(payment):
    if not payment:
        return None
    return {k: v for k, v in payment.items() if k != "item_id"}


def _state_view(record):
    awarded = _awarded_bid_id(record)
    bids = []
    paid_bid = _payment_bid_id(record)
    for b in sorted(record["bids"], key=lambda x: sort_key(Bid.from_dict(x))):
        v = dict(b)
        v["can_award"] = (
            awarded is None and b["status"] == "submitted" and not b["is_declined"] and not b["is_awarded"]
            and paid_bid in (None, b["bid_id"])
        )
        bids.append(v)
    return {
        "item": record["item"],
        "rfq": record["rfq"],
        "has_bids": _has_bids(record),
        "bids": bids,
        "cad": record["cad"],
        "prototype": record["prototype"],
        "payment": _payment_view(record["payment"]),
        "award": {"awarded_bid_id": awarded},
    }


def _require_payment(record, payment_id: int):
    payment = record["payment"]
    if not payment or payment["id"] != payment_id:
        raise HTTPException(status_code=404, detail="Payment not found for this item")
    if payment["status"] != "marked_received":
        raise HTTPException(status_code=409, detail="Payment has not been marked received")
    return payment


def _require_received(record):
    payment = record["payment"]
    if not payment or payment["status"] != "marked_received":
        raise HTTPException(status_code=409, detail="Payment has not been marked received")
    return payment


# --- Item endpoints ---
@app.post("/api/v1/items")
def create_item(body: models.ItemCreate):
    item_id = storage.next_id("items")
    item = _recompute({"id": item_id, **body.dict()})
    record = {
        "item": item,
        "rfq": {"has_rfq": False, "revision_current": None, "revision_changed": False},
        "rfq_request": None,
        "bids": [],
        "cad": asdict(CadState(revision_rounds_included=config.CAD_REVISION_ROUNDS)),
        "prototype": asdict(PrototypeState()),
        "prototype_feedback": [],
        "payment": None,
    }
    with storage.transaction("items") as records:
        records.append(record)
        events.log_event("item_created", item_id, item_id, {"category": item["category"]})
    logger.info("item %s created", item_id)
    return item


@app.get("/api/v1/items")
def list_items():
    return [r["item"] for r in storage.read_json("items")]


@app.get("/api/v1/items/{item_id}/state")
def get_item_state(item_id: int):
    return _state_view(_find(storage.read_json("items"), item_id))


@app.patch("/api/v1/items/{item_id}")
def update_item(item_id: int, body: models.ItemUpdate):
    fields = body.dict(exclude_unset=True)
    if body.dims is not None:
        fields["dims"] = body.dims.dict()
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        macro = derive_macro_state(record["rfq"]["has_rfq"], _has_bids(record))
        allowed = editable_fields(macro, record["payment"] is not None)
        locked = sorted(set(fields) - allowed)
        if locked:
            raise HTTPException(status_code=409, detail=f"These fields are locked: {', '.join(locked)}")

        item = record["item"]
        changed = {k: v for k, v in fields.items() if item.get(k) != v}
        item.update(changed)
        _recompute(item)

        spec_changed = bool({"dims", "quantity"} & set(changed))
        if spec_changed and any(b.get("revision_at_submit") is not None for b in record["bids"]):
            rfq = record["rfq"]
            rfq["revision_current"] = (rfq["revision_current"] or 0) + 1
            rfq["revision_changed"] = True
            logger.info("item %s specs changed under bids, revision now %s", item_id, rfq["revision_current"])

        event_type = "item_facts_saved" if macro.value == "A" else "item_facts_updated_after_rfq"
        events.log_event(event_type, item_id, item_id, {"fields": sorted(changed)})
    return _ok("Item updated", item=item)


# --- RFQ + bids ---
@app.post("/api/v1/items/{item_id}/rfq")
def submit_rfq(item_id: int, body: models.RFQSubmit):
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        if record["rfq"]["has_rfq"] or _has_bids(record):
            raise HTTPException(status_code=409, detail="An RFQ has already been issued for this item")
        problems = rfq_problems(RFQRequest(**body.dict()))
        if problems:
            raise HTTPException(status_code=422, detail=" ".join(problems))

        item = record["item"]
        item.update({
            "quantity": body.quantity,
            "dims": body.dims.dict(),
            "delivery_country": body.delivery_country,
            "delivery_postal_code": body.delivery_postal_code,
        })
        _recompute(item)
        record["rfq"] = {
            "has_rfq": True,
            "revision_current": record["rfq"]["revision_current"] or 1,
            "revision_changed": False,
        }
        record["rfq_request"] = {
            "invited_suppliers": [str(s) for s in body.invited_suppliers],
            "auto_invite": body.auto_invite,
            "submitted_at": _now(),
        }
        events.log_event("rfq_submitted", item_id, item_id, {
            "invited": len(body.invited_suppliers), "auto_invite": body.auto_invite,
        })
    logger.info("rfq submitted for item %s", item_id)
    return _ok("RFQ submitted")


@app.post("/api/v1/items/{item_id}/bids")
def submit_bid(item_id: int, body: models.BidSubmit):
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        if not record["rfq"]["has_rfq"]:
            raise HTTPException(status_code=409, detail="No RFQ is open for this item")
        if _awarded_bid_id(record) is not None:
            raise HTTPException(status_code=409, detail="This item has already been awarded")

        data = body.dict()
        bid = Bid(
            bid_id=storage.next_id("bids"),
            submitted_at=_now() if body.status == "submitted" else None,
            revision_at_submit=record["rfq"]["revision_current"],
            **data,
        )
        record["bids"].append(asdict(bid))
        events.log_event("bid_submitted", item_id, bid.bid_id, {
            "supplier_id": bid.supplier_id, "status": bid.status, "revision": bid.revision_at_submit,
        })
    return _ok("Bid received", bid_id=bid.bid_id)


@app.post("/api/v1/items/{item_id}/bids/{bid_id}/withdraw")
def withdraw_bid(item_id: int, bid_id: int):
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        bid = next((b for b in record["bids"] if b["bid_id"] == bid_id), None)
        if not bid:
            raise HTTPException(status_code=404, detail="Bid not found")
        if bid["is_awarded"] or bid["status"] == "withdrawn":
            raise HTTPException(status_code=409, detail="This bid can no longer be withdrawn")
        if _payment_bid_id(record) == bid_id:
            raise HTTPException(status_code=409, detail="CAD and prototype are already paid for on this bid")
        bid["status"] = "withdrawn"
        if not _has_bids(record):
            # back to pre-RFQ
            record["rfq"]["has_rfq"] = False
            record["rfq"]["revision_changed"] = False
        events.log_event("bid_withdrawn", item_id, bid_id, {"supplier_id": bid["supplier_id"]})
    return _ok("Bid withdrawn")


@app.post("/api/v1/items/{item_id}/award")
def award_bid(item_id: int, body: models.AwardRequest):
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        bids = [Bid.from_dict(b) for b in record["bids"]]
        awarded = _transition(apply_award, bids, body.bid_id, _payment_bid_id(record))
        record["bids"] = [asdict(b) for b in awarded]
        declined = [b.bid_id for b in awarded if b.is_declined]
        events.log_event("bid_awarded", item_id, body.bid_id, {"declined": declined})
    logger.info("item %s awarded to bid %s, declined %s", item_id, body.bid_id, declined)
    return _ok("Bid awarded", declined=declined)


# --- payment gate ---
@app.post("/api/v1/items/{item_id}/cad-prototype")
def request_cad_prototype(item_id: int, body: models.CadPrototypeRequest):
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        if record["payment"] is not None:
            raise HTTPException(status_code=409, detail="CAD and prototype have already been requested")
        bid = next((b for b in record["bids"] if b["bid_id"] == body.bid_id), None)
        if not bid or bid["status"] != "submitted" or bid["is_declined"]:
            raise HTTPException(status_code=409, detail="This bid is not available for a CAD and prototype request")
        awarded = _awarded_bid_id(record)
        if awarded is not None and awarded != body.bid_id:
            raise HTTPException(status_code=409, detail="CAD and prototype can only be requested on the awarded bid")

        prototype_cost = bid.get("prototype_cost") or 0.0
        payment = {
            "id": storage.next_id("payments"),
            "item_id": item_id,
            "bid_id": body.bid_id,
            "supplier_id": bid["supplier_id"],
            "status": "requested",
            "cad_fee": config.CAD_FEE,
            "prototype_cost": prototype_cost,
            "total_due": payment_total_due(prototype_cost, cad_fee=config.CAD_FEE),
            "requested_at": _now(),
            "received_at": None,
        }
        record["payment"] = payment
        events.log_event("cad_prototype_requested", item_id, payment["id"], {
            "bid_id": body.bid_id, "total_due": payment["total_due"],
        })
    return _ok("CAD and prototype requested", payment=_payment_view(payment))


@app.post("/api/v1/payments/{payment_id}/mark-received")
def mark_payment_received(payment_id: int):
    with storage.transaction("items") as records:
        record = next((r for r in records if r["payment"] and r["payment"]["id"] == payment_id), None)
        if not record:
            raise HTTPException(status_code=404, detail="Payment not found")
        payment = record["payment"]
        if payment["status"] == "marked_received":
            raise HTTPException(status_code=409, detail="Payment is already marked received")
        payment["status"] = "marked_received"
        payment["received_at"] = _now()
        events.log_event("payment_marked_received", payment["item_id"], payment_id, {
            "total_due": payment["total_due"],
        })
    logger.info("payment %s marked received", payment_id)
    return _ok("Payment marked received")


# --- CAD ---
@app.post("/api/v1/items/{item_id}/cad/upload")
def upload_cad(item_id: int, body: models.CadUpload):
    if not body.files:
        raise HTTPException(status_code=422, detail="Attach at least one CAD file")
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        _require_received(record)
        cad = _transition(apply_upload, CadState(**record["cad"]))
        record["cad"] = asdict(cad)
        events.log_event("cad_uploaded", item_id, record["payment"]["id"], {
            "version": cad.current_version, "files": [f.name for f in body.files],
        })
    return _ok("CAD uploaded", version=cad.current_version)


@app.post("/api/v1/items/{item_id}/cad/revision")
def request_cad_revision(item_id: int, body: models.CadRevisionRequest):
    if not body.files:
        raise HTTPException(status_code=422, detail="Attach at least one file to request a CAD revision")
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        _require_payment(record, body.payment_id)
        cad = _transition(apply_revision_request, CadState(**record["cad"]))
        record["cad"] = asdict(cad)
        events.log_event("cad_revision_requested", item_id, body.payment_id, {
            "version": cad.current_version,
            "round": cad.revision_rounds_used,
            "files": [f.name for f in body.files],
            "note": body.note[:500],
        })
    if cad.revision_rounds_used > cad.revision_rounds_included:
        logger.info("item %s CAD revision round %s exceeds the %s included",
                    item_id, cad.revision_rounds_used, cad.revision_rounds_included)
    return _ok("CAD revision requested", rounds_used=cad.revision_rounds_used)


@app.post("/api/v1/items/{item_id}/cad/approve")
def approve_cad(item_id: int, body: models.CadApproveRequest):
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        _require_payment(record, body.payment_id)
        cad = _transition(apply_approve, CadState(**record["cad"]))
        record["cad"] = asdict(cad)
        events.log_event("cad_approved", item_id, body.payment_id, {"version": cad.approved_version})
    return _ok("CAD approved", version=cad.approved_version)


@app.post("/api/v1/items/{item_id}/cad/release")
def release_cad(item_id: int):
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        _require_received(record)
        cad = _transition(apply_release, CadState(**record["cad"]), _now())
        record["cad"] = asdict(cad)
        events.log_event("cad_released_to_supplier", item_id, record["payment"]["id"], {
            "version": cad.approved_version, "supplier_id": record["payment"]["supplier_id"],
        })
    return _ok("CAD released to supplier")


# --- prototype ---
@app.post("/api/v1/items/{item_id}/prototype/submit")
def submit_prototype(item_id: int, body: models.PrototypeSubmit):
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        _require_received(record)
        links = [link.dict() for link in body.links]
        proto = _transition(apply_submission, PrototypeState.from_dict(record["prototype"]), links, _now())
        record["prototype"] = asdict(proto)
        events.log_event("prototype_video_submitted", item_id, record["payment"]["id"], {
            "version": proto.current_version, "links": len(links),
        })
    return _ok("Prototype submitted", version=proto.current_version)


def _check_review(record, payment_id: int, bid_id: int):
    payment = _require_payment(record, payment_id)
    if payment["bid_id"] != bid_id:
        raise HTTPException(status_code=409, detail="This bid is not the one under prototype review")


@app.post("/api/v1/items/{item_id}/prototype/approve")
def approve_prototype(item_id: int, body: models.PrototypeApproveRequest):
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        _check_review(record, body.payment_id, body.bid_id)
        proto = _transition(apply_prototype_approve, PrototypeState.from_dict(record["prototype"]), body.version)
        record["prototype"] = asdict(proto)
        events.log_event("prototype_video_approved", item_id, body.payment_id, {"version": body.version})
    return _ok("Prototype approved", version=body.version)


@app.post("/api/v1/items/{item_id}/prototype/changes")
def request_prototype_changes(item_id: int, body: models.PrototypeChangesRequest):
    with storage.transaction("items") as records:
        record = _find(records, item_id)
        _check_review(record, body.payment_id, body.bid_id)
        packet = parse_packet({k: v.dict() for k, v in body.feedback.items()})
        keyword_ids = [k["id"] for k in record["item"].get("keywords") or []]
        try:
            validate_packet(packet, keyword_ids)
        except FeedbackPacketError as e:
            raise HTTPException(status_code=422, detail=str(e))
        proto = _transition(apply_changes_requested, PrototypeState.from_dict(record["prototype"]), body.version)
        record["prototype"] = asdict(proto)
        record.setdefault("prototype_feedback", []).append({
            "version": body.version,
            "feedback": {k: v.to_dict() for k, v in packet.items()},
            "created_at": _now(),
        })
        events.log_event("prototype_video_changes_requested", item_id, body.payment_id, {
            "version": body.version, "keywords": len(packet), "phrases": phrase_total(packet),
        })
    return _ok("Changes requested", version=body.version)


# --- timeline / events ---
@app.get("/api/v1/items/{item_id}/timeline")
def get_timeline(item_id: int):
    record = _find(storage.read_json("items"), item_id)
    return timeline.build_timeline(record["item"], events.events_for_item(item_id))


@app.get("/api/v1/items/{item_id}/events", response_model=List[dict])
def list_events(item_id: int):
    _find(storage.read_json("items"), item_id)
    return events.events_for_item(item_id)
