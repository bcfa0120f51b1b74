"""Rule construction, validation and operator changes.

Rules built here carry a precomputed label so that a serialized filter stays
self-describing without the schema it was built from. Construction never
raises: when no display name is available, or label formatting fails, the
rule gets the raw ``"<field> <operator> <value>"`` label instead.
"""

from __future__ import annotations

import logging
from typing import Any

from src.errors import FilterEngineError, InvalidRuleError
from src.filter_engine.labels import fallback_label, format_rule_label
from src.filter_engine.models.field import FieldNode
from src.filter_engine.models.filter import (
    ComplexFilter,
    ComplexFilterRule,
    FilterGroup,
    Logic,
    new_id,
)
from src.filter_engine.operators import (
    Operator,
    arity_of,
    default_value_for_operator,
    is_operator_allowed,
    to_operator,
)
from src.filter_engine.values import coerce_value, matches_arity

logger = logging.getLogger(__name__)


def _label_for(field: str, operator: object, value: Any, display_name: str | None) -> str:
    if not display_name:
        return fallback_label(field, operator, value)
    try:
        return format_rule_label(display_name, operator, value)
    except (TypeError, ValueError) as exc:
        logger.debug("label formatting failed for %r: %s", field, exc)
        return fallback_label(field, operator, value)


def _wire_value(operator: Operator | None, value: Any) -> Any:
    arity = arity_of(operator) if operator is not None else None
    if arity is None:
        return value
    try:
        return coerce_value(arity, value).to_wire()
    except ValueError:
        return value


def build_rule(
    field: FieldNode,
    operator: str | Operator,
    value: Any,
    display_field_name: str | None = None,
) -> ComplexFilterRule:
    """Build a rule for a discovered field.

    Args:
        field: The selected field node; its path is copied verbatim.
        operator: Operator value.
        value: Value shaped for the operator's arity; a range may also be
            given as ``{"from": a, "to": b}``.
        display_field_name: Human name for the label, preferring configured
            display text over the raw field name.

    Returns:
        A new ComplexFilterRule with a fresh id and a computed label.
    """
    op = to_operator(operator)
    op_value = op.value if op is not None else str(operator)
    value = _wire_value(op, value)
    return ComplexFilterRule(
        id=new_id(),
        field=field.name,
        field_path=tuple(field.path) or (field.name,),
        operator=op_value,
        value=value,
        label=_label_for(field.name, op_value, value, display_field_name),
    )


def create_rule(
    field: str,
    operator: str | Operator,
    value: Any,
    display_name: str | None = None,
) -> ComplexFilterRule:
    """Build a rule for a root-level field addressed by name."""
    return build_rule(FieldNode(name=field, path=(field,)), operator, value, display_name)


def single_rule_filter(rule: ComplexFilterRule, logic: Logic = Logic.AND) -> ComplexFilter:
    """Wrap one rule in a fresh root group, as quick-filter actions produce."""
    return ComplexFilter(root_group=FilterGroup(id=new_id(), logic=logic, rules=(rule,)))


def rule_errors(rule: ComplexFilterRule, field_type: object = None) -> list[str]:
    """List the reasons a rule cannot enter a filter tree (empty when valid)."""
    problems: list[str] = []
    if not rule.field:
        problems.append("missing field")
    if not rule.field_path:
        problems.append("empty field path")
    elif rule.field and rule.field_path[-1] != rule.field:
        problems.append("field path does not end with the field")
    op = to_operator(rule.operator)
    if op is None:
        problems.append(f"unknown operator {rule.operator!r}")
        return problems
    if field_type is not None and not is_operator_allowed(field_type, op):
        problems.append(f"operator {op.value!r} not allowed for type {field_type!s}")
    arity = arity_of(op)
    if arity is not None and not matches_arity(rule.value, arity):
        problems.append(f"value does not match {arity.value} arity")
    return problems


def validate_rule(rule: object, field_type: object = None) -> ComplexFilterRule:
    """Return ``rule`` if it may enter a filter tree.

    Raises:
        InvalidRuleError: With every reason the rule is rejected.
    """
    if not isinstance(rule, ComplexFilterRule):
        raise InvalidRuleError(str(getattr(rule, "field", "") or "<none>"), "not a filter rule")
    problems = rule_errors(rule, field_type)
    if problems:
        raise InvalidRuleError(rule.field or "<none>", "; ".join(problems))
    return rule


def is_valid_rule(rule: object, field_type: object = None) -> bool:
    """Check a rule before it crosses into a filter tree.

    Args:
        rule: Candidate rule.
        field_type: When given, the operator must be allowed for this type.

    Returns:
        True when the rule may be added.
    """
    try:
        validate_rule(rule, field_type)
    except InvalidRuleError as exc:
        logger.debug("%s", FilterEngineError.from_domain_error(exc))
        return False
    return True


def change_operator(
    rule: ComplexFilterRule,
    operator: str | Operator,
    field_type: object,
    display_field_name: str | None = None,
) -> ComplexFilterRule:
    """Switch a rule's operator, re-deriving its value and label.

    The value is always reset to the empty value for the new operator; the
    ``preset`` operator is seeded with the "today" sentinel instead.
    """
    op = to_operator(operator)
    op_value = op.value if op is not None else str(operator)
    value = default_value_for_operator(field_type, op_value)
    return rule.model_copy(
        update={
            "operator": op_value,
            "value": value,
            "label": _label_for(rule.field, op_value, value, display_field_name),
        }
    )
