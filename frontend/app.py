# Streamlit UI that drives the item workflow core against the FastAPI backend
import logging

import streamlit as st

from workflow import config
from workflow.bids import comparison_slice, labelled_bids, partition_by_revision
from workflow.calculator import total_cbm
from workflow.classification import TIMELINE_LABEL_TITLES, timeline_label_for_category
from workflow.client import BackendClient
from workflow.errors import WorkflowError
from workflow.prototype import FEEDBACK_STATUSES, SEVERITIES, MAX_PHRASES_TOTAL
from workflow.rfq import RFQRequest
from workflow.session import ItemSession
from workflow.state import snapshot_editable_fields

logging.basicConfig(level=config.LOG_LEVEL)

st.set_page_config(page_title="Item Workflow", layout="wide")
st.title("Item Workflow")

if "session" not in st.session_state:
    st.session_state.session = ItemSession(BackendClient())
session: ItemSession = st.session_state.session


def run(label, fn, *args, **kwargs):
    try:
        fn(*args, **kwargs)
        st.success(label)
    except WorkflowError as e:
        st.error(str(e))


# Item picker
try:
    items = session.client.list_items()
except WorkflowError as e:
    st.error(str(e))
    st.stop()

imap = {f"#{x['id']} - {x.get('category') or 'Untitled'}": x["id"] for x in items}
sel = st.selectbox("Item", options=list(imap.keys()) if imap else [])
if not sel:
    st.info("No items yet.")
    st.stop()

item_id = imap[sel]
if session.state.item_id != item_id:
    try:
        session.open(item_id)
    except WorkflowError as e:
        st.error(str(e))
if st.button("Refresh"):
    run("Refreshed", session.refresh)

snap = session.snapshot
if snap is None:
    st.stop()

state = session.state
st.caption(
    f"State {state.macro_state.value}"
    + (" (provisional)" if state.is_provisional else "")
    + (f" · last error: {state.last_error}" if state.last_error else "")
)

tabs = st.tabs(["Item", "RFQ", "Bids", "CAD", "Prototype", "Timeline"])

# Item facts
with tabs[0]:
    item = snap.item
    st.write(f"**Category:** {item.category or '—'}  ·  **Description:** {item.description or '—'}")
    st.write(
        f"**sourcing_type:** {item.sourcing_type}  ·  **timeline_type:** {item.timeline_type}  ·  "
        f"category label: {TIMELINE_LABEL_TITLES[timeline_label_for_category(item.category)]}"
    )
    st.write(f"**CBM (unit):** {item.cbm if item.cbm is not None else '— (requires all dimensions)'}")
    st.write(f"**CBM (total):** {total_cbm(item.cbm, item.quantity) or '—'}")
    editable = snapshot_editable_fields(snap)
    if not editable:
        st.warning("Item is locked: payment has been requested.")
    else:
        st.caption(f"Editable now: {', '.join(sorted(editable))}")
        qty = st.number_input("Quantity", min_value=1, value=item.quantity or 1, step=1)
        notes = st.text_area("Notes for suppliers", value=item.supplier_notes)
        if st.button("Save item"):
            run("Saved", session.update_item, {"quantity": int(qty), "supplier_notes": notes})

# RFQ
with tabs[1]:
    if snap.rfq.has_rfq:
        st.write(f"RFQ issued · revision {snap.rfq.revision_current}"
                 + (" · specs changed since bids" if snap.rfq.revision_changed else ""))
    else:
        dims = snap.item.dims or {}
        c1, c2, c3, c4 = st.columns(4)
        w = c1.number_input("W", value=float(dims.get("w") or 0))
        d = c2.number_input("D", value=float(dims.get("d") or 0))
        h = c3.number_input("H", value=float(dims.get("h") or 0))
        unit = c4.selectbox("Unit", ["in", "cm", "mm", "m"])
        qty = st.number_input("RFQ quantity", min_value=1, value=snap.item.quantity or 1, step=1)
        country = st.text_input("Delivery country", value=snap.item.delivery_country or "")
        postal = st.text_input("Postal code", value=snap.item.delivery_postal_code or "")
        invites = st.text_input("Invite suppliers (comma separated emails)")
        auto = st.checkbox("Auto-invite matching suppliers")
        if st.button("Submit RFQ"):
            req = RFQRequest(
                quantity=int(qty),
                dims={"w": w, "d": d, "h": h, "unit": unit},
                delivery_country=country,
                delivery_postal_code=postal,
                invited_suppliers=[s.strip() for s in invites.split(",") if s.strip()],
                auto_invite=auto,
            )
            run("RFQ submitted", session.submit_rfq, req)

# Bids
with tabs[2]:
    submitted = [b for b in snap.bids if b.status == "submitted"]
    current, outdated = partition_by_revision(submitted, snap.rfq.revision_current)
    st.subheader("Compare")
    cols = st.columns(3)
    for col, (label, bid) in zip(cols, comparison_slice(submitted, [b.bid_id for b in current])):
        col.markdown(f"**Bid {label}** · #{bid.bid_id}")
        col.write(f"Unit ${bid.unit_price} · Total ${bid.total_price}")
        col.write(f"Lead time: {bid.production_lead_time or '—'}")
        col.write(f"Prototype: {'yes' if bid.prototype_commitment else 'no'} (${bid.prototype_cost or 0})")
    st.subheader("All bids")
    outdated_ids = {b.bid_id for b in outdated}
    for label, bid in labelled_bids(submitted):
        flags = "awarded" if bid.is_awarded else "declined" if bid.is_declined else ""
        st.write(f"{label}. #{bid.bid_id} from {bid.supplier_id} {flags}"
                 + (" (outdated)" if bid.bid_id in outdated_ids else ""))
        c1, c2 = st.columns(2)
        if bid.can_award and c1.button(f"Award {label}", key=f"award-{bid.bid_id}"):
            run(f"Bid {label} awarded", session.award, bid.bid_id)
        if snap.payment is None and not bid.is_declined and c2.button(
                f"Request CAD + prototype ({label})", key=f"cadproto-{bid.bid_id}"):
            run("CAD and prototype requested", session.request_cad_prototype, bid.bid_id)
    if snap.payment:
        p = snap.payment
        st.info(f"Payment #{p.id}: {p.status} · total due ${p.total_due:.2f}")

# CAD
with tabs[3]:
    cad = snap.cad
    st.write(f"Status: **{cad.status}** · version {cad.current_version} · "
             f"rounds {cad.revision_rounds_used}/{cad.revision_rounds_included}")
    if cad.released_to_supplier_at:
        st.write(f"Released to supplier at {cad.released_to_supplier_at}")
    files = st.text_area("Revision files (one name per line)")
    note = st.text_input("Revision note")
    c1, c2 = st.columns(2)
    if c1.button("Request revision"):
        attachments = [{"name": n.strip()} for n in files.splitlines() if n.strip()]
        run("Revision requested", session.request_cad_revision, attachments, note)
    if c2.button("Approve CAD"):
        run("CAD approved", session.approve_cad)

# Prototype
with tabs[4]:
    proto = snap.prototype
    st.write(f"Status: **{proto.status}** · version {proto.current_version}")
    if proto.submission:
        for link in proto.submission.links:
            st.write(f"{link.get('provider')}: {link.get('url')}")
    packet = {}
    for kw in snap.item.keywords:
        st.markdown(f"**{kw.label or kw.id}**")
        c1, c2, c3 = st.columns(3)
        status = c1.selectbox("Status", FEEDBACK_STATUSES, key=f"st-{kw.id}")
        severity = c2.selectbox("Severity", ("",) + SEVERITIES, key=f"sv-{kw.id}")
        phrases = c3.text_input("Phrase ids", key=f"ph-{kw.id}")
        detail = st.text_input("Revision detail", key=f"dt-{kw.id}", max_chars=200)
        packet[kw.id] = {
            "status": status,
            "severity": severity or None,
            "phrase_ids": [p.strip() for p in phrases.split(",") if p.strip()],
            "revision_detail": detail,
        }
    st.caption(f"Up to 3 phrases per keyword, {MAX_PHRASES_TOTAL} in total.")
    c1, c2 = st.columns(2)
    if c1.button("Approve prototype"):
        run("Prototype approved", session.approve_prototype)
    if c2.button("Request changes"):
        run("Changes requested", session.request_prototype_changes, packet)

# Timeline
with tabs[5]:
    tl = state.timeline
    if tl is None:
        st.write("Timeline unavailable.")
    else:
        st.write(f"{tl.timeline_type} · ~{tl.total_estimated_days} days")
        for step in tl.steps:
            st.write(f"{step.step_number}. {step.label}: {step.display_status}"
                     + (f" (started {step.started_at})" if step.started_at else ""))
