import pytest

from workflow.cad import (
    apply_approve,
    apply_release,
    apply_revision_request,
    apply_upload,
    can_approve,
    check_attachments,
    request_revision,
)
from workflow.errors import ClientValidationError, InvalidTransition
from workflow.snapshot import CadState, ItemSnapshot


def uploaded(**kw):
    return apply_upload(CadState(**kw))


def test_upload_bumps_version():
    cad = uploaded()
    assert cad.status == "uploaded"
    assert cad.current_version == 1
    assert apply_upload(apply_revision_request(cad)).current_version == 2


def test_revision_counts_every_accepted_request():
    cad = uploaded()
    accepted = 0
    for _ in range(5):
        cad = apply_revision_request(cad)
        accepted += 1
        # approving while a revision is pending is rejected and does not count
        with pytest.raises(InvalidTransition):
            apply_approve(cad)
    assert cad.revision_rounds_used == accepted
    assert cad.status == "revision_requested"


def test_rounds_beyond_included_are_allowed():
    cad = uploaded(revision_rounds_included=1)
    cad = apply_revision_request(apply_revision_request(cad))
    assert cad.revision_rounds_used == 2
    assert cad.rounds_remaining == 0


def test_revision_needs_an_upload():
    with pytest.raises(InvalidTransition):
        apply_revision_request(CadState())


def test_approve_then_release():
    cad = apply_approve(uploaded())
    assert cad.status == "approved"
    assert cad.approved_version == 1
    assert not can_approve(cad)
    cad = apply_release(cad, "2026-04-01T00:00:00+00:00")
    assert cad.status == "released"
    assert cad.released_to_supplier_at == "2026-04-01T00:00:00+00:00"


def test_approved_cad_is_terminal_for_revisions_and_approval():
    cad = apply_approve(uploaded())
    with pytest.raises(InvalidTransition):
        apply_revision_request(cad)
    with pytest.raises(InvalidTransition, match="already approved"):
        apply_approve(cad)
    with pytest.raises(InvalidTransition):
        apply_upload(cad)


def test_release_requires_approval():
    with pytest.raises(InvalidTransition):
        apply_release(uploaded(), "2026-04-01T00:00:00+00:00")


@pytest.mark.parametrize("files", [None, [], [{}], [{"name": ""}], ["plan.pdf"]])
def test_attachments_are_required(files):
    with pytest.raises(ClientValidationError):
        check_attachments(files)


class RecordingClient:
    def __init__(self):
        self.calls = []

    def request_cad_revision(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return {"success": True}


def paid_snapshot(cad):
    return ItemSnapshot.from_dict({
        "item": {"id": 3},
        "rfq": {"has_rfq": True, "revision_current": 1},
        "has_bids": True,
        "bids": [],
        "cad": cad,
        "prototype": {},
        "payment": {"id": 11, "bid_id": 7, "supplier_id": "sup-1", "status": "marked_received", "total_due": 200.0},
    })


def test_request_revision_with_no_files_never_calls_backend():
    client = RecordingClient()
    with pytest.raises(ClientValidationError):
        request_revision(client, paid_snapshot({"status": "uploaded", "current_version": 1}), [])
    assert client.calls == []


def test_request_revision_sends_payment_and_files():
    client = RecordingClient()
    files = [{"name": "markup.pdf"}]
    request_revision(client, paid_snapshot({"status": "uploaded", "current_version": 1}), files, note="arm height")
    assert client.calls == [((11, 3, files), {"note": "arm height"})]
