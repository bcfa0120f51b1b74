"""Human-readable rendering of rules and filters.

Labels are plain strings, independent of any UI toolkit:

    format_rule_label("Status", "equals", "ACTIVE")  -> "Status is ACTIVE"
    describe_filter(f)  -> "Status is ACTIVE and (Age is greater than 30 or Role is any of admin, owner)"
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from src.filter_engine.date_presets import get_preset
from src.filter_engine.models.filter import ComplexFilter, ComplexFilterRule, FilterGroup, Logic
from src.filter_engine.operators import Operator, arity_of, to_operator
from src.filter_engine.values import Arity


# Sentence phrasing per operator; independent of field type.
OPERATOR_PHRASES: dict[Operator, str] = {
    Operator.EQUALS: "is",
    Operator.NOT_EQUALS: "is not",
    Operator.CONTAINS: "contains",
    Operator.NOT_CONTAINS: "does not contain",
    Operator.STARTS_WITH: "starts with",
    Operator.ENDS_WITH: "ends with",
    Operator.GREATER_THAN: "is greater than",
    Operator.LESS_THAN: "is less than",
    Operator.GREATER_EQUAL: "is at least",
    Operator.LESS_EQUAL: "is at most",
    Operator.BETWEEN: "is between",
    Operator.IN: "is any of",
    Operator.NOT_IN: "is none of",
    Operator.IS_SET: "is set",
    Operator.IS_NOT_SET: "is not set",
    Operator.PRESET: "is",
}

QUANTIFIERS: dict[Logic, str] = {
    Logic.AND: "Match ALL of:",
    Logic.OR: "Match ANY of:",
}

_MAX_LISTED_ITEMS = 3
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_COMPLETE_LABEL = re.compile(
    r"\b(is|contains|does not contain|equals|starts with|ends with|between|after|before)\b"
)


def _format_date(value: date) -> str:
    return value.strftime("%b %d, %Y")


def _format_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (date, datetime)):
        return _format_date(value)
    if isinstance(value, str) and _ISO_DATE.match(value):
        try:
            return _format_date(date.fromisoformat(value[:10]))
        except ValueError:
            return value
    return str(value)


def _format_range(start: Any, end: Any) -> str:
    start_text, end_text = _format_scalar(start), _format_scalar(end)
    if start_text and end_text:
        return f"{start_text} - {end_text}"
    if start_text:
        return f"from {start_text}"
    if end_text:
        return f"until {end_text}"
    return ""


def format_value(value: Any, operator: object = None) -> str:
    """Render a rule value for display.

    Args:
        value: Wire value of the rule.
        operator: Operator of the rule; selects range and preset rendering.

    Returns:
        Display text; empty string for empty values.
    """
    op = to_operator(operator)
    if op == Operator.PRESET:
        preset = get_preset(value)
        if preset is not None:
            return preset.label.lower()
    if isinstance(value, Mapping):
        if "from" in value and "to" in value:
            return _format_range(value["from"], value["to"])
        return ", ".join(f"{k}: {_format_scalar(v)}" for k, v in value.items())
    if isinstance(value, (list, tuple)):
        if op == Operator.BETWEEN and len(value) == 2:
            return _format_range(value[0], value[1])
        items = [_format_scalar(v) for v in value]
        if not items:
            return ""
        if len(items) > _MAX_LISTED_ITEMS:
            return f"{len(items)} items"
        return ", ".join(items)
    return _format_scalar(value)


def operator_phrase(operator: object) -> str:
    op = to_operator(operator)
    if op is None:
        return str(operator)
    return OPERATOR_PHRASES[op]


def format_rule_label(display_name: str, operator: object, value: Any) -> str:
    """Compose the sentence label for a rule, e.g. ``"Status is ACTIVE"``."""
    phrase = operator_phrase(operator)
    if arity_of(operator) == Arity.NONE:
        return f"{display_name} {phrase}"
    value_text = format_value(value, operator)
    if value_text:
        return f"{display_name} {phrase} {value_text}"
    return f"{display_name} {phrase}"


def fallback_label(field: str, operator: object, value: Any) -> str:
    """Raw ``"<field> <operator> <value>"`` label used without a display name."""
    op = to_operator(operator)
    op_text = op.value if op is not None else str(operator)
    if value is None:
        return f"{field} {op_text}"
    return f"{field} {op_text} {value}"


def is_complete_label(label: str | None) -> bool:
    """True when a stored label already reads as a full condition."""
    if not label:
        return False
    return " " in label.strip() and bool(_COMPLETE_LABEL.search(label))


def describe_rule(rule: ComplexFilterRule) -> str:
    """Display text for a rule, reusing a complete stored label verbatim."""
    if is_complete_label(rule.label):
        return rule.label  # type: ignore[return-value]
    return format_rule_label(rule.label or rule.field, rule.operator, rule.value)


def describe_group(group: FilterGroup) -> str:
    """Render a group; nested groups with several children are parenthesized."""
    parts = [describe_rule(rule) for rule in group.rules]
    for subgroup in group.groups:
        if subgroup.is_empty():
            continue
        text = describe_group(subgroup)
        parts.append(f"({text})" if subgroup.child_count > 1 else text)
    joiner = " and " if group.logic == Logic.AND else " or "
    return joiner.join(parts)


def describe_filter(complex_filter: ComplexFilter | None) -> str:
    """Render a whole filter; empty string when no filter is applied."""
    if complex_filter is None:
        return ""
    return describe_group(complex_filter.root_group)


@dataclass(frozen=True)
class FilterTag:
    """One removable tag for a root-level rule or subgroup."""

    id: str
    text: str
    is_group: bool = False


@dataclass(frozen=True)
class FilterTags:
    """Tags for the root of a filter plus an optional quantifier."""

    quantifier: str | None
    tags: tuple[FilterTag, ...]


def filter_tags(complex_filter: ComplexFilter | None) -> FilterTags:
    """Build display tags; the quantifier is shown only with several children."""
    if complex_filter is None:
        return FilterTags(quantifier=None, tags=())
    root = complex_filter.root_group
    tags = [FilterTag(id=rule.id, text=describe_rule(rule)) for rule in root.rules]
    tags.extend(
        FilterTag(id=group.id, text=describe_group(group), is_group=True)
        for group in root.groups
        if not group.is_empty()
    )
    quantifier = QUANTIFIERS[Logic(root.logic)] if len(tags) > 1 else None
    return FilterTags(quantifier=quantifier, tags=tuple(tags))
