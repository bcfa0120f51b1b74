"""Operator registry: valid comparison operators per semantic field type.

Each type maps to a fixed, ordered tuple of operator descriptors tagged with
the value arity the operator expects. The first operator of a type is the
default offered when a field is selected, and ``default_value_for`` returns
a value shaped for it, so the editing layer never holds an undefined value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.filter_engine.date_presets import PRESET_SENTINEL
from src.filter_engine.field_types import SemanticType, normalize_type
from src.filter_engine.values import Arity

# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class Operator(str, Enum):
    """All operators known to the engine."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_EQUAL = "greater_equal"
    LESS_EQUAL = "less_equal"
    BETWEEN = "between"
    IN = "in"
    NOT_IN = "not_in"
    IS_SET = "is_set"
    IS_NOT_SET = "is_not_set"
    PRESET = "preset"  # Relative date shortcut; value is a preset key


OPERATOR_ARITY: dict[Operator, Arity] = {
    Operator.EQUALS: Arity.SINGLE,
    Operator.NOT_EQUALS: Arity.SINGLE,
    Operator.CONTAINS: Arity.SINGLE,
    Operator.NOT_CONTAINS: Arity.SINGLE,
    Operator.STARTS_WITH: Arity.SINGLE,
    Operator.ENDS_WITH: Arity.SINGLE,
    Operator.GREATER_THAN: Arity.SINGLE,
    Operator.LESS_THAN: Arity.SINGLE,
    Operator.GREATER_EQUAL: Arity.SINGLE,
    Operator.LESS_EQUAL: Arity.SINGLE,
    Operator.BETWEEN: Arity.RANGE,
    Operator.IN: Arity.MULTI,
    Operator.NOT_IN: Arity.MULTI,
    Operator.IS_SET: Arity.NONE,
    Operator.IS_NOT_SET: Arity.NONE,
    Operator.PRESET: Arity.SINGLE,
}


@dataclass(frozen=True)
class OperatorDescriptor:
    """An operator as offered for one field type."""

    value: Operator
    label: str
    arity: Arity
    preset: bool = False


def _op(value: Operator, label: str) -> OperatorDescriptor:
    return OperatorDescriptor(
        value=value,
        label=label,
        arity=OPERATOR_ARITY[value],
        preset=value == Operator.PRESET,
    )


_DATE_OPERATORS: tuple[OperatorDescriptor, ...] = (
    _op(Operator.EQUALS, "is on"),
    _op(Operator.NOT_EQUALS, "is not on"),
    _op(Operator.GREATER_THAN, "is after"),
    _op(Operator.LESS_THAN, "is before"),
    _op(Operator.BETWEEN, "is between"),
    _op(Operator.IS_SET, "is set"),
    _op(Operator.IS_NOT_SET, "is not set"),
    _op(Operator.PRESET, "is"),
)

OPERATOR_REGISTRY: dict[SemanticType, tuple[OperatorDescriptor, ...]] = {
    SemanticType.STRING: (
        _op(Operator.EQUALS, "is equal to"),
        _op(Operator.NOT_EQUALS, "is not equal to"),
        _op(Operator.CONTAINS, "contains"),
        _op(Operator.NOT_CONTAINS, "does not contain"),
        _op(Operator.STARTS_WITH, "starts with"),
        _op(Operator.ENDS_WITH, "ends with"),
        _op(Operator.IS_SET, "is set"),
        _op(Operator.IS_NOT_SET, "is not set"),
    ),
    SemanticType.TEXT: (
        _op(Operator.CONTAINS, "contains"),
        _op(Operator.NOT_CONTAINS, "does not contain"),
        _op(Operator.EQUALS, "is exactly"),
        _op(Operator.NOT_EQUALS, "is not exactly"),
        _op(Operator.IS_SET, "is set"),
        _op(Operator.IS_NOT_SET, "is not set"),
    ),
    SemanticType.NUMBER: (
        _op(Operator.EQUALS, "is equal to"),
        _op(Operator.NOT_EQUALS, "is not equal to"),
        _op(Operator.GREATER_THAN, "is greater than"),
        _op(Operator.LESS_THAN, "is less than"),
        _op(Operator.GREATER_EQUAL, "is greater than or equal to"),
        _op(Operator.LESS_EQUAL, "is less than or equal to"),
        _op(Operator.BETWEEN, "is between"),
        _op(Operator.IS_SET, "is set"),
        _op(Operator.IS_NOT_SET, "is not set"),
    ),
    SemanticType.DATE: _DATE_OPERATORS,
    SemanticType.DATETIME: _DATE_OPERATORS,
    SemanticType.BOOLEAN: (
        _op(Operator.EQUALS, "is"),
        _op(Operator.NOT_EQUALS, "is not"),
    ),
    SemanticType.ENUM: (
        _op(Operator.EQUALS, "is"),
        _op(Operator.NOT_EQUALS, "is not"),
        _op(Operator.IN, "is any of"),
        _op(Operator.NOT_IN, "is none of"),
    ),
    SemanticType.RELATION: (
        _op(Operator.IS_SET, "exists"),
        _op(Operator.IS_NOT_SET, "does not exist"),
    ),
}

_TYPE_DEFAULTS: dict[SemanticType, Any] = {
    SemanticType.STRING: "",
    SemanticType.TEXT: "",
    SemanticType.NUMBER: None,
    SemanticType.DATE: None,
    SemanticType.DATETIME: None,
    SemanticType.BOOLEAN: False,
    SemanticType.ENUM: None,
    SemanticType.RELATION: None,
}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def _semantic(field_type: object) -> SemanticType:
    return normalize_type(field_type) or SemanticType.STRING


def to_operator(value: object) -> Operator | None:
    """Parse an operator value, or None if the engine does not know it."""
    if isinstance(value, Operator):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Operator(value)
    except ValueError:
        return None


def operators_for(field_type: object) -> tuple[OperatorDescriptor, ...]:
    """Return the ordered operators valid for a type (string row if unknown)."""
    return OPERATOR_REGISTRY[_semantic(field_type)]


def get_descriptor(field_type: object, operator: object) -> OperatorDescriptor | None:
    """Find the descriptor of ``operator`` within the type's operators."""
    op = to_operator(operator)
    if op is None:
        return None
    for descriptor in operators_for(field_type):
        if descriptor.value == op:
            return descriptor
    return None


def is_operator_allowed(field_type: object, operator: object) -> bool:
    return get_descriptor(field_type, operator) is not None


def arity_of(operator: object) -> Arity | None:
    """Arity of an operator independent of field type."""
    op = to_operator(operator)
    return OPERATOR_ARITY.get(op) if op is not None else None


def operator_label(field_type: object, operator: object) -> str:
    """Type-specific operator label, falling back to the raw operator value."""
    descriptor = get_descriptor(field_type, operator)
    if descriptor is not None:
        return descriptor.label
    return str(operator)


def default_value_for(field_type: object) -> Any:
    """Empty value for a type, shaped for its first operator."""
    return _TYPE_DEFAULTS[_semantic(field_type)]


def default_value_for_operator(field_type: object, operator: object) -> Any:
    """Empty value shaped for a specific operator of a type."""
    op = to_operator(operator)
    if op == Operator.PRESET:
        return PRESET_SENTINEL
    arity = OPERATOR_ARITY.get(op) if op is not None else None
    if arity == Arity.NONE:
        return None
    if arity == Arity.MULTI:
        return []
    if arity == Arity.RANGE:
        return [None, None]
    return default_value_for(field_type)
