"""Additive merge of an incoming filter into the active one.

Quick-filter actions and "apply saved search" both produce a filter that is
merged into whatever the user already has, instead of replacing it. A rule
is a duplicate when field, operator and value are equal; values compare
through their canonical JSON so a tuple and a list with the same items, or
two dicts with the same keys, are the same value. Order inside a value
matters.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from src.errors import FilterEngineError, InvalidRuleError, MalformedFilterError
from src.filter_engine.models.filter import ComplexFilter, ComplexFilterRule, FilterGroup
from src.filter_engine.rule_builder import validate_rule
from src.filter_engine.tree import iter_rules, normalize

logger = logging.getLogger(__name__)


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def rule_signature(rule: ComplexFilterRule) -> tuple[str, str, str]:
    """Identity of a rule for deduplication: (field, operator, canonical value)."""
    return rule.field, rule.operator, _canonical(rule.value)


def rules_equal(a: ComplexFilterRule, b: ComplexFilterRule) -> bool:
    return rule_signature(a) == rule_signature(b)


def group_signature(group: FilterGroup) -> str:
    """Structural identity of a group, ignoring rule and group ids and labels."""

    def _shape(g: FilterGroup) -> dict[str, Any]:
        return {
            "logic": g.logic.value,
            "rules": [list(rule_signature(r)) for r in g.rules],
            "groups": [_shape(sub) for sub in g.groups],
        }

    return _canonical(_shape(group))


def _parse_incoming(incoming: object) -> ComplexFilter:
    """Validate an incoming descriptor, including every rule at any depth.

    Raises:
        MalformedFilterError: If the input is not a usable filter.
    """
    if isinstance(incoming, ComplexFilter):
        parsed = incoming
    elif not isinstance(incoming, Mapping):
        raise MalformedFilterError(f"expected a filter object, got {type(incoming).__name__}")
    elif "rootGroup" not in incoming and "root_group" not in incoming:
        raise MalformedFilterError("missing rootGroup")
    else:
        try:
            parsed = ComplexFilter.model_validate(incoming)
        except ValidationError as exc:
            raise MalformedFilterError(f"{exc.error_count()} validation error(s)") from exc

    for rule in iter_rules(parsed):
        try:
            validate_rule(rule)
        except InvalidRuleError as exc:
            raise MalformedFilterError(f"rule on '{exc.field}': {exc.reason}") from exc
    return parsed


def merge_additive(
    existing: ComplexFilter | None,
    incoming: ComplexFilter | Mapping[str, Any] | None,
) -> ComplexFilter | None:
    """Merge ``incoming`` into ``existing`` without duplicating rules.

    Args:
        existing: Active filter, or None.
        incoming: Filter to add; a ComplexFilter or its raw camelCase dict.

    Returns:
        The merged filter. ``existing`` is returned unchanged when
        ``incoming`` is absent, malformed, or holds any invalid rule. The
        root logic of ``existing`` is preserved.
    """
    if incoming is None:
        return existing
    try:
        parsed = _parse_incoming(incoming)
    except MalformedFilterError as exc:
        logger.warning("%s", FilterEngineError.from_domain_error(exc))
        return existing

    if existing is None:
        return normalize(parsed)

    root = existing.root_group
    incoming_root = parsed.root_group

    seen = {rule_signature(r) for r in root.rules}
    added_rules: list[ComplexFilterRule] = []
    for rule in incoming_root.rules:
        signature = rule_signature(rule)
        if signature in seen:
            logger.debug("merge: skipping duplicate rule on %s", rule.field)
            continue
        seen.add(signature)
        added_rules.append(rule)

    seen_groups = {group_signature(g) for g in root.groups}
    added_groups: list[FilterGroup] = []
    for group in incoming_root.groups:
        signature = group_signature(group)
        if group.is_empty() or signature in seen_groups:
            continue
        seen_groups.add(signature)
        added_groups.append(group)

    if not added_rules and not added_groups:
        return normalize(existing)

    merged_root = root.model_copy(
        update={
            "rules": root.rules + tuple(added_rules),
            "groups": root.groups + tuple(added_groups),
        }
    )
    return normalize(existing.model_copy(update={"root_group": merged_root}))
