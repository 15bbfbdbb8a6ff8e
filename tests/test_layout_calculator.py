"""
Tests for the five-zone Layout Calculator.
"""
import random

import pytest

from models import LayoutInput, LayoutInputError
from services.layout_calculator import LayoutCalculator, message_elements


def _layout(calculator, message="Happy Birthday", name="Ann", **kwargs):
    return calculator.calculate_layout(LayoutInput(
        message=message, recipient_name=name, tenant_id="agency-1", **kwargs
    ))


def _chars(zone):
    return [s.character for s in zone.signs]


def test_birthday_layout_zones():
    calculator = LayoutCalculator(rng=random.Random(1))
    layout = _layout(calculator)

    assert layout.zone1.total_width == 26
    assert _chars(layout.zone1) == list("HAPPYBIRTHDAY")
    assert layout.zone2.total_width == 6
    assert _chars(layout.zone2) == list("ANN")

    # 10 ft per side, 60% minimum -> three 2 ft decorations per side
    assert len(layout.zone3.signs) == 6
    assert layout.zone3.total_width == 12
    assert layout.zone3.fill_percentage == pytest.approx(0.6)
    assert layout.meets_minimum_fill is True

    assert len(layout.zone4.signs) == 2
    assert layout.zone4.total_width == 2
    assert [s.sign_id for s in layout.zone5.signs] == ["bookend-left", "bookend-right"]
    assert layout.zone5.total_width == 3

    assert layout.total_width == 26
    assert layout.grid_columns == 13


def test_sign_ids_reference_catalog_signs():
    layout = _layout(LayoutCalculator(rng=random.Random(1)))

    assert layout.zone1.signs[0].sign_id == "letter-H"
    assert layout.zone2.signs[0].sign_id == "letter-A"
    assert all(s.sign_id == "backdrop-balloon-cluster" for s in layout.zone4.signs)
    placement_ids = [s.placement_id for zone in layout.zones() for s in zone.signs]
    assert len(placement_ids) == len(set(placement_ids))


def test_event_number_inserted_after_happy():
    layout = _layout(LayoutCalculator(), event_number=40)

    assert _chars(layout.zone1) == list("HAPPY") + ["4", "0", "TH"] + list("BIRTHDAY")
    assert layout.zone1.total_width == 13 * 2 + 2 * 2 + 1.5
    ordinal = layout.zone1.signs[7]
    assert ordinal.is_ordinal is True
    assert ordinal.sign_id == "ordinal-TH"
    assert ordinal.width == 1.5


@pytest.mark.parametrize("message, number, expected", [
    ("Happy Anniversary", 25, list("HAPPY") + ["2", "5", "TH"] + list("ANNIVERSARY")),
    ("Congratulations", 3, list("CONGRATULATIONS") + ["3", "RD"]),
    ("Graduation", 2024, ["2", "0", "2", "4", "TH"] + list("GRADUATION")),
    ("Welcome Home", 1, list("WELCOMEHOME") + ["1", "ST"]),
])
def test_event_number_insertion_table(message, number, expected):
    assert [value for _, value in message_elements(message, number)] == expected


def test_number_in_message_keeps_written_suffix():
    elements = message_elements("Happy 21st Birthday")
    assert elements[5:8] == [("number", "2"), ("number", "1"), ("ordinal", "ST")]


def test_number_in_message_gets_computed_suffix():
    elements = message_elements("Happy 22 Birthday")
    assert elements[5:8] == [("number", "2"), ("number", "2"), ("ordinal", "ND")]


def test_event_number_wins_over_number_in_message():
    elements = message_elements("Happy 30 Birthday", 31)

    # No table prefix matches "HAPPY30BIRTHDAY", so the event number is appended
    assert elements[-3:] == [("number", "3"), ("number", "1"), ("ordinal", "ST")]
    assert [kind for kind, _ in elements].count("ordinal") == 1


def test_no_side_space_means_no_decorations():
    layout = _layout(LayoutCalculator(), message="Hi", name="Jonathan")

    assert layout.zone3.signs == []
    assert layout.zone3.fill_percentage == 0.0
    assert layout.meets_minimum_fill is False
    assert layout.zone4.signs == []
    assert len(layout.zone5.signs) == 2
    assert layout.total_width == 16


def test_hobby_decorations_come_first_on_each_side(calculator):
    layout = _layout(calculator, hobbies=["soccer", "art"])
    left = [s for s in layout.zone3.signs if s.metadata["side"] == "left"]
    right = [s for s in layout.zone3.signs if s.metadata["side"] == "right"]

    assert [s.metadata["label"] for s in left[:2]] == ["soccer", "art"]
    assert [s.sign_id for s in left[:2]] == ["decoration-soccer-ball", "decoration-art-palette"]
    assert [s.metadata["label"] for s in right[:2]] == ["soccer", "art"]
    assert len(left) == 3 and len(right) == 3


def test_theme_decorations_resolve_to_in_stock_catalog_signs(calculator, catalog):
    layout = _layout(calculator, theme="princess")
    known = {s.id for s in catalog.get_available_signs("agency-1")}

    assert layout.zone3.signs
    assert all(s.sign_id in known for s in layout.zone3.signs)
    for s in layout.zone3.signs:
        assert s.metadata["label"] in ("Crown", "Castle", "Wand")


def test_theme_lookup_ignores_case():
    layout = _layout(LayoutCalculator(rng=random.Random(3)), theme="Sports")

    labels = {s.metadata["label"] for s in layout.zone3.signs}
    assert labels
    assert labels <= {"Soccer Ball", "Basketball", "Baseball"}


def test_unknown_theme_falls_back_to_classic():
    layout = _layout(LayoutCalculator(rng=random.Random(3)), theme="pirates")
    assert {s.metadata["label"] for s in layout.zone3.signs} <= {"Balloon", "Gift", "Bow"}


def test_decoration_cap_per_side():
    long_message = "CONGRATULATIONS" * 5
    layout = _layout(LayoutCalculator(), message=long_message, name="Al")

    left = [s for s in layout.zone3.signs if s.metadata["side"] == "left"]
    assert len(left) == 20
    assert layout.meets_minimum_fill is False


def test_layout_width_identity(calculator):
    layout = _layout(calculator, event_number=7, hobbies=["music"])

    for zone in layout.zones():
        assert zone.total_width == pytest.approx(sum(s.width for s in zone.signs))
    assert layout.total_width == max(
        layout.zone1.total_width, layout.zone2.total_width + layout.zone3.total_width
    )


def test_seeded_rng_is_reproducible():
    first = _layout(LayoutCalculator(rng=random.Random(42)), theme="sports")
    second = _layout(LayoutCalculator(rng=random.Random(42)), theme="sports")
    assert first.to_dict() == second.to_dict()


@pytest.mark.parametrize("kwargs", [
    {"message": ""},
    {"name": "   "},
    {"event_number": 0},
    {"event_number": -3},
])
def test_invalid_input_rejected(kwargs):
    with pytest.raises(LayoutInputError):
        _layout(LayoutCalculator(), **kwargs)
