import pytest

from workflow.errors import ClientValidationError, InvalidTransition
from workflow.rfq import RFQRequest, rfq_problems, submit, validate_rfq
from workflow.snapshot import ItemSnapshot


def request(**kw):
    data = dict(
        quantity=4,
        dims={"w": 100, "d": 50, "h": 75, "unit": "cm"},
        delivery_country="CA",
        delivery_postal_code="M5V 2T6",
        invited_suppliers=["orders@northwoodmill.ca"],
    )
    data.update(kw)
    return RFQRequest(**data)


def test_complete_request_passes():
    assert rfq_problems(request()) == []
    assert rfq_problems(request(invited_suppliers=[], auto_invite=True)) == []


@pytest.mark.parametrize("kw", [
    {"quantity": 0},
    {"quantity": True},
    {"quantity": 2.5},
    {"dims": {"w": 100, "d": 50, "unit": "cm"}},
    {"dims": {"w": 100, "d": 50, "h": 75, "unit": "yd"}},
    {"delivery_country": " "},
    {"delivery_postal_code": None},
    {"invited_suppliers": []},
])
def test_incomplete_request_rejected(kw):
    with pytest.raises(ClientValidationError):
        validate_rfq(request(**kw))


class NoNetwork:
    def submit_rfq(self, *args):
        raise AssertionError("backend should not be called")


def test_submit_refuses_once_rfq_exists():
    snap = ItemSnapshot.from_dict({
        "item": {"id": 1}, "rfq": {"has_rfq": True}, "has_bids": False,
        "bids": [], "cad": {}, "prototype": {},
    })
    with pytest.raises(InvalidTransition):
        submit(NoNetwork(), snap, request())
