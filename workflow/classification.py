# classification.py
# Rule-based sourcing category and review timeline inference.

from typing import Optional

FURNITURE = "furniture"
GLOBAL_SOURCING = "global_sourcing"
SOURCING_TYPES = (FURNITURE, GLOBAL_SOURCING)

FURNITURE_6_STEP = "furniture_6_step"
SOURCING_4_STEP = "sourcing_4_step"

FURNITURE_CATEGORIES = ["sofa", "chair", "table", "desk", "cabinet", "shelf", "bed", "furniture"]
SOURCING_CATEGORIES = ["electronics", "hardware", "fixture", "lighting", "appliance"]

FURNITURE_KEYWORDS = ["furniture", "upholstery", "cushion", "fabric", "wood", "metal frame"]
SOURCING_KEYWORDS = ["electronic", "component", "hardware", "fixture", "bulb", "led"]


def _contains_any(text: str, words) -> bool:
    return any(w in text for w in words)


def infer_sourcing_type(category: Optional[str], description: Optional[str]) -> str:
    cat = (category or "").lower()
    desc = (description or "").lower()

    if _contains_any(cat, FURNITURE_CATEGORIES):
        return FURNITURE
    if _contains_any(cat, SOURCING_CATEGORIES):
        return GLOBAL_SOURCING
    if _contains_any(desc, FURNITURE_KEYWORDS):
        return FURNITURE
    if _contains_any(desc, SOURCING_KEYWORDS):
        return GLOBAL_SOURCING
    return FURNITURE


def timeline_type(sourcing_type: Optional[str]) -> str:
    return FURNITURE_6_STEP if sourcing_type == FURNITURE else SOURCING_4_STEP


def derive_timeline_type(sourcing_type: Optional[str]) -> Optional[str]:
    """Strict variant of timeline_type(): unknown or empty input gives None."""
    if sourcing_type not in SOURCING_TYPES:
        return None
    return timeline_type(sourcing_type)


def is_valid_sourcing_type(sourcing_type: Optional[str]) -> bool:
    if not sourcing_type:
        return True
    return sourcing_type in SOURCING_TYPES


# --- category name -> timeline label (display only) ---
# Independent of infer_sourcing_type(); nothing here feeds back into the item.

LABEL_6STEP_FURNITURE = "6step_furniture"
LABEL_4STEP_SOURCING = "4step_sourcing"
LABEL_NONE = "none"

TIMELINE_LABEL_TITLES = {
    LABEL_6STEP_FURNITURE: "6-Step Furniture Production",
    LABEL_4STEP_SOURCING: "4-Step Global Sourcing",
    LABEL_NONE: "No production timeline",
}

INDOOR_FURNITURE_NAMES = (
    "Indoor Furniture", "Indoor Sofa", "Indoor Sectional", "Indoor Lounge Chair",
    "Indoor Dining Chair", "Indoor Dining Table", "Casegoods", "Beds", "Consoles",
    "Desks", "Cabinets", "Nightstands", "Upholstered Furniture", "Millwork / Cabinetry",
    "Millwork", "Cabinetry", "Fully Upholstered Pieces",
)

OUTDOOR_FURNITURE_NAMES = (
    "Outdoor Furniture", "Outdoor Sofa", "Outdoor Sectional", "Outdoor Lounge Chair",
    "Outdoor Dining", "Outdoor Dining Chair", "Outdoor Dining Table", "Daybed",
    "Chaise Lounge", "Pool Furniture", "Sun Lounger", "Outdoor Seating Sets",
)

SOURCING_NAMES = (
    "Lighting", "Flooring", "Marble / Stone", "Marble", "Stone", "Granite", "Carpets",
    "Drapery", "Window Treatments", "Accessories", "Hardware", "Metalwork",
)


def timeline_label_for_category(product_category: Optional[str], fallback_category: Optional[str] = None) -> str:
    category = (product_category or fallback_category or "").strip()
    if not category:
        return LABEL_NONE
    lowered = category.lower()
    if "sample kit" in lowered or "material sample" in lowered:
        return LABEL_NONE
    for name in INDOOR_FURNITURE_NAMES + OUTDOOR_FURNITURE_NAMES:
        if name.lower() in lowered:
            return LABEL_6STEP_FURNITURE
    for name in SOURCING_NAMES:
        if name.lower() in lowered:
            return LABEL_4STEP_SOURCING
    # anything produced by an outside factory
    return LABEL_4STEP_SOURCING
