import pytest

from workflow.classification import (
    FURNITURE,
    FURNITURE_6_STEP,
    GLOBAL_SOURCING,
    LABEL_4STEP_SOURCING,
    LABEL_6STEP_FURNITURE,
    LABEL_NONE,
    SOURCING_4_STEP,
    derive_timeline_type,
    infer_sourcing_type,
    is_valid_sourcing_type,
    timeline_type,
    timeline_label_for_category,
)


def test_indoor_furniture_category():
    st = infer_sourcing_type("Indoor Furniture", "")
    assert st == FURNITURE
    assert timeline_type(st) == FURNITURE_6_STEP


def test_electronics_category():
    st = infer_sourcing_type("Electronics", "")
    assert st == GLOBAL_SOURCING
    assert timeline_type(st) == SOURCING_4_STEP


@pytest.mark.parametrize("category,description,expected", [
    # category rules win over description rules
    ("Dining Table", "LED strip under the top", FURNITURE),
    ("Lighting", "solid wood base", GLOBAL_SOURCING),
    # description only
    ("", "Upholstery in boucle", FURNITURE),
    ("Misc", "replacement bulb pack", GLOBAL_SOURCING),
    # furniture keywords checked before sourcing keywords
    ("", "wood crate for hardware", FURNITURE),
    # default
    ("Misc", "something", FURNITURE),
    (None, None, FURNITURE),
    ("HARDWARE", "", GLOBAL_SOURCING),
])
def test_infer_sourcing_type_rule_order(category, description, expected):
    assert infer_sourcing_type(category, description) == expected


def test_timeline_type_defaults_to_sourcing():
    assert timeline_type("anything") == SOURCING_4_STEP
    assert timeline_type(None) == SOURCING_4_STEP


def test_derive_timeline_type_is_strict():
    assert derive_timeline_type(FURNITURE) == FURNITURE_6_STEP
    assert derive_timeline_type(GLOBAL_SOURCING) == SOURCING_4_STEP
    assert derive_timeline_type("invalid") is None
    assert derive_timeline_type(None) is None


def test_is_valid_sourcing_type():
    assert is_valid_sourcing_type(FURNITURE)
    assert is_valid_sourcing_type(None)
    assert is_valid_sourcing_type("")
    assert not is_valid_sourcing_type("invalid")


@pytest.mark.parametrize("category,expected", [
    ("Indoor Sofa", LABEL_6STEP_FURNITURE),
    ("outdoor dining table", LABEL_6STEP_FURNITURE),
    ("Millwork / Cabinetry", LABEL_6STEP_FURNITURE),
    ("Marble / Stone", LABEL_4STEP_SOURCING),
    ("Window Treatments", LABEL_4STEP_SOURCING),
    ("Electronics", LABEL_4STEP_SOURCING),
    ("Material Sample Kit", LABEL_NONE),
    ("", LABEL_NONE),
])
def test_timeline_label_for_category(category, expected):
    assert timeline_label_for_category(category) == expected


def test_timeline_label_falls_back_to_project_category():
    assert timeline_label_for_category("", "Lighting") == LABEL_4STEP_SOURCING
