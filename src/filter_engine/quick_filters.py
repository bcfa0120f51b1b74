"""One-click filters built from column configuration.

A quick filter is a single-rule filter that is merged additively into the
active filter (see ``merge.merge_additive``), so applying the same quick
filter twice leaves one rule.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from src.filter_engine.field_types import FieldTypeResolver, SemanticType
from src.filter_engine.models.field import ColumnConfig, FieldNode
from src.filter_engine.models.filter import ComplexFilter
from src.filter_engine.operators import Operator, arity_of
from src.filter_engine.rule_builder import build_rule, is_valid_rule, single_rule_filter
from src.filter_engine.values import Arity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuickFilter:
    """A ready-made filter offered for a popular column."""

    id: str
    label: str
    filter: ComplexFilter


def _is_empty_value(value: Any) -> bool:
    if value is None or value == "":
        return True
    if isinstance(value, (list, tuple)):
        return all(v is None or v == "" for v in value)
    return False


def _node_for(column: ColumnConfig) -> FieldNode:
    segments = tuple(s for s in column.field.split(".") if s)
    return FieldNode(name=segments[-1], path=segments, label=column.display_name)


def build_quick_filter(
    column: ColumnConfig,
    operator: str | Operator,
    value: Any,
    *,
    resolver: FieldTypeResolver | None = None,
) -> ComplexFilter | None:
    """Build a single-rule filter for a column.

    Args:
        column: Column whose display name labels the rule. Dotted fields
            (``"tenant.status"``) address nested fields.
        operator: Operator value.
        value: Rule value. Empty values yield None except for operators
            that take no value.
        resolver: Type resolver used to check the operator; defaults to
            one built from ``column`` alone.

    Returns:
        The filter, or None when the value is empty or the rule is invalid.
    """
    if not column.field.strip("."):
        return None
    if arity_of(operator) != Arity.NONE and _is_empty_value(value):
        logger.debug("quick filter on %s skipped: empty value", column.field)
        return None
    if arity_of(operator) == Arity.NONE:
        value = None

    node = _node_for(column)
    rule = build_rule(node, operator, value, column.display_name)
    resolver = resolver or FieldTypeResolver([column])
    field_type = resolver.resolve(node.name, node.path)
    if not is_valid_rule(rule, field_type):
        logger.warning("quick filter on %s rejected: %s %r", column.field, rule.operator, value)
        return None
    return single_rule_filter(rule)


def suggest_quick_filters(columns: Sequence[ColumnConfig]) -> list[QuickFilter]:
    """Derive one-click filters for popular boolean and enum columns.

    Booleans get a single "is Yes" filter; enums with configured options get
    one filter per option. Other types need user input and are skipped.
    """
    resolver = FieldTypeResolver(columns)
    suggestions: list[QuickFilter] = []
    for column in columns:
        if not (column.popular and column.filterable):
            continue
        node = _node_for(column)
        field_type = resolver.resolve(node.name, node.path)

        if field_type == SemanticType.BOOLEAN:
            candidates: list[Any] = [True]
        elif field_type == SemanticType.ENUM and column.options:
            candidates = [option.value for option in column.options]
        else:
            continue

        for value in candidates:
            built = build_quick_filter(column, Operator.EQUALS, value, resolver=resolver)
            if built is None:
                continue
            rule = built.root_group.rules[0]
            suggestions.append(
                QuickFilter(
                    id=f"{column.field}:{Operator.EQUALS.value}:{value}",
                    label=rule.label or column.display_name,
                    filter=built,
                )
            )
    return suggestions
