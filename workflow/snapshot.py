# snapshot.py
# Client-side view of the authoritative item state returned by the backend.

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

CAD_STATUSES = ("none", "uploaded", "revision_requested", "approved", "released")
PROTOTYPE_STATUSES = ("not_submitted", "submitted", "changes_requested", "approved")
PAYMENT_STATUSES = ("requested", "marked_received")


@dataclass
class Keyword:
    id: str
    label: str = ""


@dataclass
class Inspiration:
    id: str
    url: str
    type: str = "image"


@dataclass
class Item:
    id: int
    category: str = ""
    description: str = ""
    quantity: Optional[int] = None
    dims: Optional[Dict[str, Any]] = None
    dims_cm: Optional[Dict[str, float]] = None
    cbm: Optional[float] = None
    sourcing_type: Optional[str] = None
    timeline_type: Optional[str] = None
    delivery_country: Optional[str] = None
    delivery_postal_code: Optional[str] = None
    keywords: List[Keyword] = field(default_factory=list)
    inspiration: List[Inspiration] = field(default_factory=list)
    smart_alternatives: bool = False
    smart_alternatives_note: str = ""
    supplier_notes: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        return cls(
            id=int(data["id"]),
            category=data.get("category") or "",
            description=data.get("description") or "",
            quantity=data.get("quantity"),
            dims=data.get("dims"),
            dims_cm=data.get("dims_cm"),
            cbm=data.get("cbm"),
            sourcing_type=data.get("sourcing_type"),
            timeline_type=data.get("timeline_type"),
            delivery_country=data.get("delivery_country"),
            delivery_postal_code=data.get("delivery_postal_code"),
            keywords=[Keyword(**k) for k in data.get("keywords") or []],
            inspiration=[Inspiration(**i) for i in data.get("inspiration") or []],
            smart_alternatives=bool(data.get("smart_alternatives")),
            smart_alternatives_note=data.get("smart_alternatives_note") or "",
            supplier_notes=data.get("supplier_notes") or "",
        )

    @property
    def keyword_ids(self) -> List[str]:
        return [k.id for k in self.keywords]


@dataclass
class RFQEnvelope:
    has_rfq: bool = False
    revision_current: Optional[int] = None
    revision_changed: bool = False


@dataclass
class Bid:
    bid_id: int
    supplier_id: Optional[str] = None
    status: str = "submitted"
    submitted_at: Optional[str] = None
    unit_price: Optional[float] = None
    total_price: Optional[float] = None
    quantity: Optional[int] = None
    production_lead_time: Optional[str] = None
    delivery_cost: Optional[float] = None
    shipping_mode: Optional[str] = None
    prototype_commitment: bool = False
    prototype_cost: Optional[float] = None
    prototype_timeline: Optional[str] = None
    video_links: Dict[str, List[str]] = field(default_factory=dict)
    photo_urls: List[str] = field(default_factory=list)
    smart_alternative: Optional[Dict[str, Any]] = None
    revision_at_submit: Optional[int] = None
    is_awarded: bool = False
    is_declined: bool = False
    can_award: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bid":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        known["bid_id"] = int(known["bid_id"])
        known["video_links"] = known.get("video_links") or {}
        known["photo_urls"] = known.get("photo_urls") or []
        return cls(**known)


@dataclass
class CadState:
    status: str = "none"
    current_version: int = 0
    approved_version: Optional[int] = None
    revision_rounds_included: int = 3
    revision_rounds_used: int = 0
    released_to_supplier_at: Optional[str] = None

    @property
    def rounds_remaining(self) -> int:
        return max(0, self.revision_rounds_included - self.revision_rounds_used)


@dataclass
class PrototypeSubmission:
    version: int
    links: List[Dict[str, str]] = field(default_factory=list)
    submitted_at: Optional[str] = None


@dataclass
class PrototypeState:
    status: str = "not_submitted"
    current_version: int = 0
    approved_version: Optional[int] = None
    submission: Optional[PrototypeSubmission] = None
    history: List[PrototypeSubmission] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrototypeState":
        sub = data.get("submission")
        return cls(
            status=data.get("status", "not_submitted"),
            current_version=data.get("current_version", 0),
            approved_version=data.get("approved_version"),
            submission=PrototypeSubmission(**sub) if sub else None,
            history=[PrototypeSubmission(**h) for h in data.get("history") or []],
        )


@dataclass
class PaymentRecord:
    id: int
    bid_id: int
    supplier_id: Optional[str]
    status: str
    total_due: float
    cad_fee: float = 0.0
    prototype_cost: float = 0.0
    requested_at: Optional[str] = None
    received_at: Optional[str] = None

    @property
    def is_received(self) -> bool:
        return self.status == "marked_received"


@dataclass
class ItemSnapshot:
    item: Item
    rfq: RFQEnvelope
    has_bids: bool
    bids: List[Bid]
    cad: CadState
    prototype: PrototypeState
    payment: Optional[PaymentRecord] = None
    awarded_bid_id: Optional[int] = None

    @property
    def item_id(self) -> int:
        return self.item.id

    def bid(self, bid_id: int) -> Optional[Bid]:
        return next((b for b in self.bids if b.bid_id == bid_id), None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemSnapshot":
        payment = data.get("payment")
        award = data.get("award") or {}
        return cls(
            item=Item.from_dict(data["item"]),
            rfq=RFQEnvelope(**(data.get("rfq") or {})),
            has_bids=bool(data.get("has_bids")),
            bids=[Bid.from_dict(b) for b in data.get("bids") or []],
            cad=CadState(**(data.get("cad") or {})),
            prototype=PrototypeState.from_dict(data.get("prototype") or {}),
            payment=PaymentRecord(**payment) if payment else None,
            awarded_bid_id=award.get("awarded_bid_id"),
        )


@dataclass
class TimelineStep:
    step_number: int
    step_key: str
    label: str
    status: str = "pending"
    display_status: str = "pending"
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    estimated_days: int = 0
    is_delayed: bool = False
    evidence: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class Timeline:
    item_id: int
    timeline_type: Optional[str]
    steps: List[TimelineStep] = field(default_factory=list)
    total_estimated_days: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Timeline":
        return cls(
            item_id=int(data["item_id"]),
            timeline_type=data.get("timeline_type"),
            steps=[TimelineStep(**s) for s in data.get("steps") or []],
            total_estimated_days=data.get("total_estimated_days", 0),
        )
