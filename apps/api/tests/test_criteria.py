"""Test the segment criteria language."""

import math

import pytest

from packages.shared.criteria import (
    NumberValue,
    TextValue,
    evaluate_condition,
    field_catalog,
    matches_all,
    parse_condition,
    to_number,
    validate_conditions,
)
from packages.shared.exceptions import InvalidCondition
from packages.shared.profiles import enrich_customer


def cond(field, operator, value):
    return parse_condition({"field": field, "operator": operator, "value": value})


@pytest.fixture
def profile(record_factory):
    return enrich_customer(
        record_factory(
            "X",
            orders=[(100, "paid"), (20, "paid"), (5, "pending")],
            city="Lagos",
            country="Nigeria",
            full_name="Ada Okafor",
            email="Ada@Example.com",
            role="Wholesale",
        )
    )


class TestValueResolution:
    """Test typed condition values."""

    def test_numeric_field_gets_number_value(self):
        condition = cond("lifetime_value", ">", "100")
        assert condition.value == NumberValue(number=100.0, raw="100")

    def test_text_field_gets_text_value(self):
        condition = cond("city", "contains", "lag")
        assert condition.value == TextValue(text="lag")

    def test_non_numeric_value_becomes_nan(self):
        condition = cond("orders_count", ">", "lots")
        assert math.isnan(condition.value.as_number())

    @pytest.mark.parametrize("raw", ["1_000", "inf", "infinity", "-INF", "nan", "NaN"])
    def test_loose_float_spellings_become_nan(self, raw):
        assert math.isnan(to_number(raw))

    def test_infinity_spelling_is_accepted(self):
        assert to_number("Infinity") == math.inf
        assert to_number("-Infinity") == -math.inf
        assert to_number(" 1e3 ") == 1000.0

    def test_round_trips_wire_form(self):
        raw = {"field": "lifetime_value", "operator": ">", "value": "99.5"}
        assert parse_condition(raw).to_dict() == raw

    def test_numeric_input_is_stringified(self):
        assert cond("lifetime_value", ">", 100).to_dict()["value"] == "100"


class TestEvaluation:
    """Test single-condition evaluation."""

    def test_greater_than(self, profile):
        assert evaluate_condition(profile, cond("lifetime_value", ">", "100"))
        assert not evaluate_condition(profile, cond("lifetime_value", ">", "120"))

    def test_less_than(self, profile):
        assert evaluate_condition(profile, cond("orders_count", "<", "4"))
        assert not evaluate_condition(profile, cond("orders_count", "<", "3"))

    def test_numeric_equality(self, profile):
        assert evaluate_condition(profile, cond("lifetime_value", "=", "120"))
        assert evaluate_condition(profile, cond("lifetime_value", "=", "120.0"))
        assert evaluate_condition(profile, cond("orders_count", "=", "3"))

    def test_text_equality_is_case_insensitive(self, profile):
        assert evaluate_condition(profile, cond("role", "=", "wholesale"))
        assert evaluate_condition(profile, cond("email", "=", "ada@example.COM"))
        assert not evaluate_condition(profile, cond("role", "=", "whole"))

    def test_contains_is_case_insensitive(self, profile):
        assert evaluate_condition(profile, cond("city", "contains", "LAG"))
        assert evaluate_condition(profile, cond("full_name", "contains", "okafor"))
        assert not evaluate_condition(profile, cond("country", "contains", "ghana"))

    def test_non_numeric_comparison_is_false(self, profile):
        assert not evaluate_condition(profile, cond("lifetime_value", ">", "abc"))
        assert not evaluate_condition(profile, cond("lifetime_value", "<", "abc"))
        assert not evaluate_condition(profile, cond("lifetime_value", "=", ""))

    def test_unknown_field_is_false(self, profile):
        for operator in (">", "<", "=", "contains"):
            assert not evaluate_condition(profile, cond("favourite_colour", operator, ""))

    def test_unknown_operator_is_false(self, profile):
        assert not evaluate_condition(profile, cond("city", "startswith", "La"))

    def test_missing_value_is_false(self, record_factory):
        profile = enrich_customer(record_factory("X", email=None))
        assert not evaluate_condition(profile, cond("email", "contains", ""))

    def test_contains_on_number_uses_plain_rendering(self, profile):
        assert evaluate_condition(profile, cond("lifetime_value", "contains", "120"))
        assert not evaluate_condition(profile, cond("lifetime_value", "contains", ".0"))


class TestConditionLists:
    """Test AND semantics and validation."""

    def test_all_conditions_must_match(self, profile):
        conditions = [cond("city", "contains", "lag"), cond("lifetime_value", ">", "100")]
        assert matches_all(profile, conditions)

        conditions.append(cond("role", "=", "vip"))
        assert not matches_all(profile, conditions)

    def test_validate_rejects_empty_list(self):
        with pytest.raises(InvalidCondition):
            validate_conditions([])

    def test_validate_rejects_unknown_field(self):
        with pytest.raises(InvalidCondition) as exc_info:
            validate_conditions(
                [
                    {"field": "city", "operator": "=", "value": "Lagos"},
                    {"field": "shoe_size", "operator": ">", "value": "9"},
                ]
            )
        assert exc_info.value.details["index"] == 1

    @pytest.mark.parametrize(
        "field,operator",
        [("city", ">"), ("email", "<"), ("lifetime_value", "contains"), ("orders_count", "like")],
    )
    def test_validate_rejects_incompatible_operator(self, field, operator):
        with pytest.raises(InvalidCondition):
            validate_conditions([{"field": field, "operator": operator, "value": "1"}])

    def test_validate_rejects_non_object(self):
        with pytest.raises(InvalidCondition):
            validate_conditions(["lifetime_value > 100"])

    def test_validate_accepts_valid_list(self):
        conditions = validate_conditions(
            [
                {"field": "lifetime_value", "operator": ">", "value": "100"},
                {"field": "country", "operator": "contains", "value": "nig"},
            ]
        )
        assert len(conditions) == 2


def test_field_catalog_lists_operators():
    """Test field catalog used by the segment builder."""
    catalog = {entry["key"]: entry for entry in field_catalog()}

    assert catalog["lifetime_value"]["type"] == "number"
    assert catalog["lifetime_value"]["operators"] == [">", "<", "="]
    assert catalog["city"]["operators"] == ["contains", "="]
    assert len(catalog) == 7
