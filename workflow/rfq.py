# rfq.py
# Request-for-quotation payload and its local checks.

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .calculator import dims_to_cm
from .errors import ClientValidationError, InvalidTransition
from .snapshot import ItemSnapshot


@dataclass
class RFQRequest:
    quantity: Optional[int]
    dims: Optional[Dict[str, Any]]
    delivery_country: Optional[str]
    delivery_postal_code: Optional[str]
    invited_suppliers: List[str] = field(default_factory=list)
    auto_invite: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def rfq_problems(req: RFQRequest) -> List[str]:
    problems = []
    if isinstance(req.quantity, bool) or not isinstance(req.quantity, int) or req.quantity <= 0:
        problems.append("Quantity must be a positive whole number.")
    if dims_to_cm(req.dims) is None:
        problems.append("Width, depth and height with a supported unit are required.")
    if not (req.delivery_country or "").strip():
        problems.append("Delivery country is required.")
    if not (req.delivery_postal_code or "").strip():
        problems.append("Delivery postal code is required.")
    if not req.auto_invite and not [s for s in req.invited_suppliers if s]:
        problems.append("Invite at least one supplier or enable auto-invite.")
    return problems


def validate_rfq(req: RFQRequest) -> RFQRequest:
    problems = rfq_problems(req)
    if problems:
        raise ClientValidationError(" ".join(problems))
    return req


def submit(client, snapshot: ItemSnapshot, req: RFQRequest) -> Dict[str, Any]:
    if snapshot.rfq.has_rfq or snapshot.has_bids:
        raise InvalidTransition("An RFQ has already been issued for this item.")
    validate_rfq(req)
    return client.submit_rfq(snapshot.item_id, req.to_dict())
