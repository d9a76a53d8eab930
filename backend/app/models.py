# models.py
# Pydantic request models for the item workflow API

from pydantic import BaseModel, Field, EmailStr
from typing import List, Optional, Dict, Literal

Unit = Literal["mm", "cm", "m", "in"]


class Dimensions(BaseModel):
    w: Optional[float] = None
    d: Optional[float] = None
    h: Optional[float] = None
    unit: Unit = "in"


class Keyword(BaseModel):
    id: str
    label: str = ""


class InspirationRef(BaseModel):
    id: str
    url: str
    type: str = "image"


class ItemCreate(BaseModel):
    category: str = ""
    description: str = ""
    quantity: Optional[int] = Field(None, gt=0)
    dims: Optional[Dimensions] = None
    delivery_country: Optional[str] = None
    delivery_postal_code: Optional[str] = None
    keywords: List[Keyword] = []
    inspiration: List[InspirationRef] = []
    smart_alternatives: bool = False
    smart_alternatives_note: str = ""
    supplier_notes: str = ""


class ItemUpdate(BaseModel):
    # only the fields actually sent are applied (exclude_unset)
    category: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[int] = Field(None, gt=0)
    dims: Optional[Dimensions] = None
    delivery_country: Optional[str] = None
    delivery_postal_code: Optional[str] = None
    keywords: Optional[List[Keyword]] = None
    inspiration: Optional[List[InspirationRef]] = None
    smart_alternatives: Optional[bool] = None
    smart_alternatives_note: Optional[str] = None
    supplier_notes: Optional[str] = None


class RFQSubmit(BaseModel):
    quantity: Optional[int] = None
    dims: Optional[Dimensions] = None
    delivery_country: Optional[str] = None
    delivery_postal_code: Optional[str] = None
    invited_suppliers: List[EmailStr] = []
    auto_invite: bool = False


class SmartAlternative(BaseModel):
    category: str
    from_value: Optional[str] = None
    to_value: Optional[str] = None
    comparison_points: List[str] = []
    price_impact: Optional[str] = None
    lead_time_impact: Optional[str] = None
    note: str = ""


class BidSubmit(BaseModel):
    supplier_id: str
    status: Literal["draft", "submitted"] = "submitted"
    unit_price: Optional[float] = None
    total_price: Optional[float] = None
    quantity: Optional[int] = None
    production_lead_time: Optional[str] = None
    delivery_cost: Optional[float] = None
    shipping_mode: Optional[str] = None
    prototype_commitment: bool = False
    prototype_cost: Optional[float] = None
    prototype_timeline: Optional[str] = None
    video_links: Dict[str, List[str]] = {}
    photo_urls: List[str] = []
    smart_alternative: Optional[SmartAlternative] = None


class AwardRequest(BaseModel):
    bid_id: int


class CadPrototypeRequest(BaseModel):
    bid_id: int


class Attachment(BaseModel):
    name: str
    url: Optional[str] = None


class CadUpload(BaseModel):
    files: List[Attachment]


class CadRevisionRequest(BaseModel):
    payment_id: int
    files: List[Attachment] = []
    note: str = ""


class CadApproveRequest(BaseModel):
    payment_id: int


class VideoLink(BaseModel):
    provider: str
    url: str


class PrototypeSubmit(BaseModel):
    links: List[VideoLink]


class PrototypeApproveRequest(BaseModel):
    payment_id: int
    bid_id: int
    version: int


class FeedbackEntry(BaseModel):
    status: Literal["satisfied", "needs_adjustment", "not_addressed"]
    severity: Optional[Literal["must_fix", "should_fix", "optional"]] = None
    phrase_ids: List[str] = []
    revision_detail: str = ""


class PrototypeChangesRequest(BaseModel):
    payment_id: int
    bid_id: int
    version: int
    feedback: Dict[str, FeedbackEntry]
