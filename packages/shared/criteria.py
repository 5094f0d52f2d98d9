"""
Segment criteria language.

A segment is a list of (field, operator, value) conditions combined with AND.
There is no OR, grouping or negation; a profile matches when every condition
matches. Values arrive as strings from the builder and are resolved into a
NumberValue or TextValue according to the field's declared type.

Evaluation never raises: unknown fields, missing values and non-numeric
operands simply make the condition false.
"""

import enum
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Union

from packages.shared.exceptions import InvalidCondition
from packages.shared.profiles import ComputedProfile


class FieldType(str, enum.Enum):
    """Value type of a filterable field."""

    number = "number"
    text = "text"


class Operator(str, enum.Enum):
    """Comparison operator."""

    gt = ">"
    lt = "<"
    eq = "="
    contains = "contains"


class FieldKey(str, enum.Enum):
    """Fields a condition can filter on (wire keys)."""

    lifetime_value = "lifetime_value"
    orders_count = "orders_count"
    role = "role"
    email = "email"
    full_name = "full_name"
    city = "city"
    country = "country"


@dataclass(frozen=True)
class FieldSpec:
    """Static description of a filterable field."""

    key: FieldKey
    label: str
    type: FieldType
    attribute: str  # ComputedProfile attribute holding the value


FIELD_SPECS: Dict[str, FieldSpec] = {
    spec.key.value: spec
    for spec in (
        FieldSpec(FieldKey.lifetime_value, "Total Spent (Paid)", FieldType.number, "realized_value"),
        FieldSpec(FieldKey.orders_count, "Order Count", FieldType.number, "order_count"),
        FieldSpec(FieldKey.role, "Customer Role", FieldType.text, "role"),
        FieldSpec(FieldKey.email, "Email", FieldType.text, "email"),
        FieldSpec(FieldKey.full_name, "Full Name", FieldType.text, "full_name"),
        FieldSpec(FieldKey.city, "City", FieldType.text, "city"),
        FieldSpec(FieldKey.country, "Country", FieldType.text, "country"),
    )
}

ALLOWED_OPERATORS: Dict[FieldType, tuple] = {
    FieldType.number: (Operator.gt, Operator.lt, Operator.eq),
    FieldType.text: (Operator.contains, Operator.eq),
}


NON_FINITE_SPELLING = re.compile(r"^[+-]?(inf|infinity|nan)$", re.IGNORECASE)


def to_number(value: Any) -> float:
    """Coerce a value to float; anything unparseable becomes NaN."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text or "_" in text:
        return math.nan
    # Only the spelled-out "Infinity" counts as a number; "inf" and "nan" do not
    if text.lstrip("+-") == "Infinity":
        return -math.inf if text.startswith("-") else math.inf
    if NON_FINITE_SPELLING.match(text):
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def stringify(value: Any) -> str:
    """Render a field value for text comparison (integral floats lose their '.0')."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class NumberValue:
    """Condition value of a numeric field."""

    number: float
    raw: str

    def as_number(self) -> float:
        return self.number

    def as_text(self) -> str:
        return self.raw


@dataclass(frozen=True)
class TextValue:
    """Condition value of a text field."""

    text: str

    def as_number(self) -> float:
        return to_number(self.text)

    def as_text(self) -> str:
        return self.text


ConditionValue = Union[NumberValue, TextValue]


@dataclass(frozen=True)
class Condition:
    """One (field, operator, value) clause of a segment."""

    field: str
    operator: str
    value: ConditionValue

    @property
    def spec(self) -> Union[FieldSpec, None]:
        return FIELD_SPECS.get(self.field)

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "operator": self.operator, "value": self.value.as_text()}

    def __str__(self) -> str:
        label = self.spec.label if self.spec else self.field
        return f"{label} {self.operator} {self.value.as_text()}"


def resolve_value(field: str, raw: Any) -> ConditionValue:
    """Resolve a raw builder value into a typed value using the field's declared type."""
    text = "" if raw is None else stringify(raw)
    spec = FIELD_SPECS.get(field)
    if spec is not None and spec.type == FieldType.number:
        return NumberValue(number=to_number(text), raw=text)
    return TextValue(text=text)


def parse_condition(raw: Union[Condition, Mapping[str, Any]]) -> Condition:
    """Build a Condition from its wire form without validating it."""
    if isinstance(raw, Condition):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidCondition("Condition must be an object", {"condition": repr(raw)})
    field = str(raw.get("field") or "")
    operator = str(raw.get("operator") or "")
    return Condition(field=field, operator=operator, value=resolve_value(field, raw.get("value")))


def parse_conditions(raw_conditions: Iterable[Any]) -> List[Condition]:
    """Build Conditions from a list of wire-form objects."""
    return [parse_condition(raw) for raw in raw_conditions or []]


def validate_condition(condition: Condition, index: int = 0) -> None:
    """
    Reject a condition that can never be meaningful.

    Raises:
        InvalidCondition: unknown field, or operator not allowed for the field type
    """
    spec = condition.spec
    if spec is None:
        raise InvalidCondition(
            f"Unknown field '{condition.field}'",
            {"index": index, "field": condition.field, "allowed_fields": sorted(FIELD_SPECS)},
        )
    allowed = [op.value for op in ALLOWED_OPERATORS[spec.type]]
    if condition.operator not in allowed:
        raise InvalidCondition(
            f"Operator '{condition.operator}' is not allowed for {spec.type.value} field '{condition.field}'",
            {"index": index, "field": condition.field, "operator": condition.operator, "allowed_operators": allowed},
        )


def validate_conditions(raw_conditions: Iterable[Any]) -> List[Condition]:
    """Parse and validate a condition list destined for persistence."""
    conditions = parse_conditions(raw_conditions)
    if not conditions:
        raise InvalidCondition("A segment needs at least one condition")
    for index, condition in enumerate(conditions):
        validate_condition(condition, index)
    return conditions


def evaluate_condition(profile: ComputedProfile, condition: Condition) -> bool:
    """Decide whether one condition matches a profile."""
    spec = condition.spec
    if spec is None:
        return False
    left = getattr(profile, spec.attribute, None)
    if left is None:
        return False

    operator = condition.operator
    if operator == Operator.gt.value:
        return to_number(left) > condition.value.as_number()
    if operator == Operator.lt.value:
        return to_number(left) < condition.value.as_number()
    if operator == Operator.eq.value:
        if spec.type == FieldType.number:
            return to_number(left) == condition.value.as_number()
        return stringify(left).lower() == condition.value.as_text().lower()
    if operator == Operator.contains.value:
        return condition.value.as_text().lower() in stringify(left).lower()
    return False


def matches_all(profile: ComputedProfile, conditions: Sequence[Condition]) -> bool:
    """AND semantics: every condition must match."""
    return all(evaluate_condition(profile, condition) for condition in conditions)


def field_catalog() -> List[Dict[str, Any]]:
    """Describe the filterable fields for the segment builder."""
    return [
        {
            "key": key,
            "label": spec.label,
            "type": spec.type.value,
            "operators": [op.value for op in ALLOWED_OPERATORS[spec.type]],
        }
        for key, spec in FIELD_SPECS.items()
    ]
