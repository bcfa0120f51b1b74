"""Copy-on-write operations over the recursive filter tree.

Every function takes a ``ComplexFilter | None`` and returns a new value; no
input is ever modified. A filter has two externally visible states:

- absent (``None``)
- present (at least one rule somewhere in the tree)

Operations only move between those two. Groups emptied by an edit are pruned,
and a tree whose root ends up empty collapses to ``None``.

Nested edits go through ``update_group_at(root, path, edit)``: ``path`` is
the chain of group ids from the root to the target, ``edit`` maps the target
group to its replacement (or ``None`` to drop it), and every group on the
path is rebuilt while untouched siblings are shared.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from src.config import TreeConfig
from src.errors import FilterEngineError, InvalidRuleError
from src.filter_engine.models.filter import (
    ComplexFilter,
    ComplexFilterRule,
    FilterGroup,
    Logic,
    new_id,
)
from src.filter_engine.rule_builder import is_valid_rule, validate_rule

logger = logging.getLogger(__name__)

_max_depth = TreeConfig().max_depth

GroupPath = tuple[str, ...]
GroupEdit = Callable[[FilterGroup], FilterGroup | None]


def configure_tree(config: TreeConfig) -> None:
    """Set the nesting limit used when a call does not pass ``max_depth``."""
    global _max_depth
    _max_depth = config.max_depth


def depth_limit(max_depth: int | None = None) -> int:
    return _max_depth if max_depth is None else max_depth


# ---------------------------------------------------------------------------
# Structural helpers
# ---------------------------------------------------------------------------


def normalize_group(group: FilterGroup) -> FilterGroup | None:
    """Prune empty subgroups recursively; None if nothing is left."""
    groups = tuple(
        g for g in (normalize_group(sub) for sub in group.groups) if g is not None
    )
    if not group.rules and not groups:
        return None
    if groups == group.groups:
        return group
    return group.model_copy(update={"groups": groups})


def normalize(complex_filter: ComplexFilter | None) -> ComplexFilter | None:
    """Collapse a present-but-empty filter to None."""
    if complex_filter is None:
        return None
    root = normalize_group(complex_filter.root_group)
    if root is None:
        return None
    if root is complex_filter.root_group:
        return complex_filter
    return complex_filter.model_copy(update={"root_group": root})


def group_height(group: FilterGroup) -> int:
    """Number of group levels in a subtree (1 for a group without subgroups)."""
    return 1 + max((group_height(g) for g in group.groups), default=0)


def find_group_path(
    root: FilterGroup,
    group_id: str,
    *,
    max_depth: int | None = None,
) -> GroupPath | None:
    """Return the chain of group ids from ``root`` to ``group_id``."""
    max_depth = depth_limit(max_depth)
    stack: list[tuple[FilterGroup, GroupPath]] = [(root, (root.id,))]
    while stack:
        group, path = stack.pop()
        if group.id == group_id:
            return path
        if len(path) > max_depth:
            logger.warning("filter tree deeper than %d levels; not descending", max_depth)
            continue
        for child in reversed(group.groups):
            stack.append((child, path + (child.id,)))
    return None


def find_rule_location(
    root: FilterGroup,
    rule_id: str,
    *,
    max_depth: int | None = None,
) -> tuple[GroupPath, ComplexFilterRule] | None:
    """Return the path of the group holding ``rule_id`` and the rule itself."""
    max_depth = depth_limit(max_depth)
    stack: list[tuple[FilterGroup, GroupPath]] = [(root, (root.id,))]
    while stack:
        group, path = stack.pop()
        for rule in group.rules:
            if rule.id == rule_id:
                return path, rule
        if len(path) > max_depth:
            logger.warning("filter tree deeper than %d levels; not descending", max_depth)
            continue
        for child in reversed(group.groups):
            stack.append((child, path + (child.id,)))
    return None


def update_group_at(
    root: FilterGroup,
    path: GroupPath,
    edit: GroupEdit,
) -> FilterGroup | None:
    """Rebuild the groups along ``path`` with ``edit`` applied to its target.

    Args:
        root: Group the path starts at; ``path[0]`` must be its id.
        path: Group ids from ``root`` to the target group.
        edit: Returns the replacement for the target, or None to drop it.

    Returns:
        The new root (None if the root itself was dropped). An unknown
        path returns ``root`` unchanged.
    """
    if not path or path[0] != root.id:
        return root
    if len(path) == 1:
        return edit(root)
    next_id = path[1]
    groups: list[FilterGroup] = []
    for child in root.groups:
        if child.id == next_id:
            updated = update_group_at(child, path[1:], edit)
            if updated is not None:
                groups.append(updated)
        else:
            groups.append(child)
    return root.model_copy(update={"groups": tuple(groups)})


def _replace_root(complex_filter: ComplexFilter, root: FilterGroup | None) -> ComplexFilter | None:
    if root is None:
        return None
    return normalize(complex_filter.model_copy(update={"root_group": root}))


def _field_names(model: type[BaseModel]) -> dict[str, str]:
    names: dict[str, str] = {}
    for name, info in model.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def _normalize_partial(model: type[BaseModel], partial: Mapping[str, Any]) -> dict[str, Any]:
    """Map camelCase/snake_case keys to field names; ids are never replaced."""
    names = _field_names(model)
    normalized: dict[str, Any] = {}
    for key, value in partial.items():
        name = names.get(key)
        if name is None:
            logger.debug("ignoring unknown %s field %r", model.__name__, key)
            continue
        if name == "id":
            continue
        normalized[name] = value
    return normalized


def sanitize_group(group: FilterGroup, field_type: object = None) -> FilterGroup:
    """Drop invalid rules anywhere in a group."""
    rules = tuple(r for r in group.rules if is_valid_rule(r, field_type))
    if len(rules) != len(group.rules):
        logger.warning(
            "dropped %d invalid rule(s) from group %s", len(group.rules) - len(rules), group.id
        )
    groups = tuple(sanitize_group(g, field_type) for g in group.groups)
    return group.model_copy(update={"rules": rules, "groups": groups})


# ---------------------------------------------------------------------------
# Rule operations
# ---------------------------------------------------------------------------


def add_rule(
    complex_filter: ComplexFilter | None,
    rule: ComplexFilterRule,
    group_id: str | None = None,
    *,
    field_type: object = None,
    max_depth: int | None = None,
) -> ComplexFilter | None:
    """Append a rule to the root group (or to ``group_id``).

    An absent filter becomes a fresh AND root holding the rule. Invalid rules
    and unknown group ids leave the filter unchanged.
    """
    try:
        validate_rule(rule, field_type)
    except InvalidRuleError as exc:
        logger.warning("%s", FilterEngineError.from_domain_error(exc))
        return complex_filter

    if complex_filter is None:
        return ComplexFilter(root_group=FilterGroup(id=new_id(), logic=Logic.AND, rules=(rule,)))

    root = complex_filter.root_group
    path = find_group_path(root, group_id or root.id, max_depth=max_depth)
    if path is None:
        logger.warning("add_rule: group %s not found", group_id)
        return complex_filter

    new_root = update_group_at(
        root, path, lambda g: g.model_copy(update={"rules": g.rules + (rule,)})
    )
    return _replace_root(complex_filter, new_root)


def update_rule(
    complex_filter: ComplexFilter | None,
    rule_id: str,
    partial: Mapping[str, Any],
    *,
    field_type: object = None,
    max_depth: int | None = None,
) -> ComplexFilter | None:
    """Shallow-merge ``partial`` into the rule with ``rule_id``.

    Unknown ids, and updates that would make the rule invalid, return the
    filter unchanged.
    """
    if complex_filter is None:
        return None
    root = complex_filter.root_group
    location = find_rule_location(root, rule_id, max_depth=max_depth)
    if location is None:
        return complex_filter
    path, rule = location

    changes = _normalize_partial(ComplexFilterRule, partial)
    try:
        updated = ComplexFilterRule.model_validate({**rule.model_dump(), **changes})
    except ValidationError as exc:
        logger.warning("update_rule: rejected update for %s: %s", rule_id, exc.errors())
        return complex_filter
    if not is_valid_rule(updated, field_type):
        logger.warning("update_rule: update would invalidate rule %s", rule_id)
        return complex_filter

    def _edit(group: FilterGroup) -> FilterGroup:
        rules = tuple(updated if r.id == rule_id else r for r in group.rules)
        return group.model_copy(update={"rules": rules})

    return _replace_root(complex_filter, update_group_at(root, path, _edit))


def remove_rule(
    complex_filter: ComplexFilter | None,
    rule_id: str,
    *,
    max_depth: int | None = None,
) -> ComplexFilter | None:
    """Remove a rule by id; emptied groups are pruned and an empty root is None."""
    if complex_filter is None:
        return None
    root = complex_filter.root_group
    location = find_rule_location(root, rule_id, max_depth=max_depth)
    if location is None:
        return normalize(complex_filter)
    path, _ = location

    def _edit(group: FilterGroup) -> FilterGroup:
        return group.model_copy(
            update={"rules": tuple(r for r in group.rules if r.id != rule_id)}
        )

    return _replace_root(complex_filter, update_group_at(root, path, _edit))


def set_logic(
    complex_filter: ComplexFilter | None,
    logic: Logic | str,
    group_id: str | None = None,
    *,
    max_depth: int | None = None,
) -> ComplexFilter | None:
    """Replace the logic of the root group (or of ``group_id``)."""
    if complex_filter is None:
        return None
    try:
        new_logic = Logic(logic)
    except ValueError:
        logger.warning("set_logic: unknown logic %r", logic)
        return complex_filter
    root = complex_filter.root_group
    path = find_group_path(root, group_id or root.id, max_depth=max_depth)
    if path is None:
        return complex_filter
    new_root = update_group_at(root, path, lambda g: g.model_copy(update={"logic": new_logic}))
    return _replace_root(complex_filter, new_root)


# ---------------------------------------------------------------------------
# Group operations
# ---------------------------------------------------------------------------


def add_group(
    complex_filter: ComplexFilter | None,
    group: FilterGroup,
    parent_id: str | None = None,
    *,
    field_type: object = None,
    max_depth: int | None = None,
) -> ComplexFilter | None:
    """Nest ``group`` under the root (or under ``parent_id``).

    Groups are added with at least one valid rule somewhere inside them; an
    empty group would create a present-but-empty tree and is ignored, as is
    a group that would nest deeper than ``max_depth``.
    """
    max_depth = depth_limit(max_depth)
    candidate = normalize_group(sanitize_group(group, field_type))
    if candidate is None:
        logger.warning("add_group: group %s has no valid rules; ignored", group.id)
        return complex_filter

    if complex_filter is None:
        if group_height(candidate) > max_depth:
            logger.warning("%s", FilterEngineError.from_code("E-4002", max_depth=max_depth))
            return None
        return ComplexFilter(
            root_group=FilterGroup(id=new_id(), logic=Logic.AND, groups=(candidate,))
        )

    root = complex_filter.root_group
    path = find_group_path(root, parent_id or root.id, max_depth=max_depth)
    if path is None:
        logger.warning("add_group: parent group %s not found", parent_id)
        return complex_filter
    # ``path`` includes the root, which sits at depth 0.
    if len(path) - 1 + group_height(candidate) > max_depth:
        logger.warning("%s", FilterEngineError.from_code("E-4002", max_depth=max_depth))
        return complex_filter

    new_root = update_group_at(
        root, path, lambda g: g.model_copy(update={"groups": g.groups + (candidate,)})
    )
    return _replace_root(complex_filter, new_root)


def update_group(
    complex_filter: ComplexFilter | None,
    group_id: str,
    partial: Mapping[str, Any],
    *,
    field_type: object = None,
    max_depth: int | None = None,
) -> ComplexFilter | None:
    """Shallow-merge ``partial`` (logic, rules, groups) into a group."""
    max_depth = depth_limit(max_depth)
    if complex_filter is None:
        return None
    root = complex_filter.root_group
    path = find_group_path(root, group_id, max_depth=max_depth)
    if path is None:
        return complex_filter

    def _edit(group: FilterGroup) -> FilterGroup | None:
        changes = _normalize_partial(FilterGroup, partial)
        try:
            updated = FilterGroup.model_validate({**group.model_dump(), **changes})
        except ValidationError as exc:
            logger.warning("update_group: rejected update for %s: %s", group_id, exc.errors())
            return group
        return sanitize_group(updated, field_type)

    new_root = update_group_at(root, path, _edit)
    if new_root is not None and group_height(new_root) > max_depth + 1:
        logger.warning("%s", FilterEngineError.from_code("E-4002", max_depth=max_depth))
        return complex_filter
    return _replace_root(complex_filter, new_root)


def remove_group(
    complex_filter: ComplexFilter | None,
    group_id: str,
    *,
    max_depth: int | None = None,
) -> ComplexFilter | None:
    """Remove a group by id; removing the root clears the filter."""
    if complex_filter is None:
        return None
    root = complex_filter.root_group
    path = find_group_path(root, group_id, max_depth=max_depth)
    if path is None:
        return normalize(complex_filter)
    return _replace_root(complex_filter, update_group_at(root, path, lambda g: None))


def clear(_complex_filter: ComplexFilter | None = None) -> None:
    """Drop all filtering."""
    return None


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def iter_rules(complex_filter: ComplexFilter | None) -> Iterator[ComplexFilterRule]:
    """Yield every rule in depth-first order."""
    if complex_filter is None:
        return
    stack = [complex_filter.root_group]
    while stack:
        group = stack.pop()
        yield from group.rules
        stack.extend(reversed(group.groups))


def find_rule(complex_filter: ComplexFilter | None, rule_id: str) -> ComplexFilterRule | None:
    return next((r for r in iter_rules(complex_filter) if r.id == rule_id), None)


def count_rules(complex_filter: ComplexFilter | None) -> int:
    return sum(1 for _ in iter_rules(complex_filter))
