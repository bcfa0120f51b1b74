"""Tests for copy-on-write filter tree operations."""

import pytest

from src.config import TreeConfig
from src.filter_engine.models import ComplexFilter, FilterGroup, Logic
from src.filter_engine.tree import (
    add_group,
    add_rule,
    clear,
    configure_tree,
    count_rules,
    depth_limit,
    find_group_path,
    find_rule,
    iter_rules,
    normalize,
    remove_group,
    remove_rule,
    set_logic,
    update_group,
    update_group_at,
    update_rule,
)
from tests.helpers import make_filter, make_group, make_rule


def _nested(depth: int) -> FilterGroup:
    """A chain of ``depth`` groups, innermost holding one rule."""
    group = make_group(make_rule("leaf", "equals", 1))
    for _ in range(depth - 1):
        group = make_group(groups=[group])
    return group


class TestAddRule:
    def test_on_none_creates_and_root(self):
        """Adding to an absent filter creates an AND root."""
        rule = make_rule("status", "equals", "ACTIVE")
        f = add_rule(None, rule)
        assert isinstance(f, ComplexFilter)
        assert f.root_group.logic == Logic.AND
        assert f.root_group.rules == (rule,)

    def test_appends_to_root(self):
        """Rules are appended to the root without touching the input."""
        first = add_rule(None, make_rule("a", "equals", 1))
        second = add_rule(first, make_rule("b", "equals", 2))
        assert [r.field for r in second.root_group.rules] == ["a", "b"]
        assert [r.field for r in first.root_group.rules] == ["a"]

    def test_appends_to_nested_group(self):
        """A group id targets a nested group."""
        inner = make_group(make_rule("a", "equals", 1))
        f = make_filter(make_rule("b", "equals", 2), groups=[inner])
        result = add_rule(f, make_rule("c", "equals", 3), inner.id)
        assert [r.field for r in result.root_group.groups[0].rules] == ["a", "c"]
        assert len(f.root_group.groups[0].rules) == 1

    def test_invalid_rule_is_noop(self):
        """Invalid rules leave the filter unchanged."""
        f = make_filter(make_rule("a", "equals", 1))
        assert add_rule(f, make_rule("b", "between", 3)) is f
        assert add_rule(None, make_rule("", "equals", 1, field_path=("x",))) is None

    def test_operator_checked_against_field_type(self):
        """An operator not allowed for the field type is refused."""
        assert add_rule(None, make_rule("flag", "contains", "x"), field_type="boolean") is None

    def test_unknown_group_is_noop(self):
        """An unknown group id leaves the filter unchanged."""
        f = make_filter(make_rule("a", "equals", 1))
        assert add_rule(f, make_rule("b", "equals", 2), "missing") is f


class TestUpdateRule:
    def test_shallow_merge(self):
        """Partial updates merge into the rule and keep its id."""
        rule = make_rule("age", "equals", 1)
        f = make_filter(rule)
        result = update_rule(f, rule.id, {"value": 5})
        assert result.root_group.rules[0].value == 5
        assert result.root_group.rules[0].id == rule.id
        assert f.root_group.rules[0].value == 1

    def test_camel_case_keys(self):
        """camelCase keys in a partial map to model fields."""
        rule = make_rule("email", "equals", "x")
        f = make_filter(rule)
        result = update_rule(f, rule.id, {"fieldPath": ["owner", "email"], "operator": "contains"})
        updated = result.root_group.rules[0]
        assert updated.field_path == ("owner", "email")
        assert updated.operator == "contains"

    def test_nested_rule(self):
        """Rules inside nested groups can be updated."""
        inner_rule = make_rule("plan", "equals", "free")
        f = make_filter(make_rule("a", "equals", 1), groups=[make_group(inner_rule)])
        result = update_rule(f, inner_rule.id, {"value": "pro"})
        assert result.root_group.groups[0].rules[0].value == "pro"

    def test_unknown_id_returns_equal_filter(self):
        """An unknown rule id returns an equal filter."""
        f = make_filter(make_rule("a", "equals", 1))
        assert update_rule(f, "missing", {"value": 2}) == f

    def test_update_that_invalidates_rule_is_rejected(self):
        """An update producing an invalid rule is refused."""
        rule = make_rule("age", "equals", 1)
        f = make_filter(rule)
        assert update_rule(f, rule.id, {"operator": "between"}) is f

    def test_id_cannot_be_replaced(self):
        """A partial cannot change the rule id."""
        rule = make_rule("a", "equals", 1)
        result = update_rule(make_filter(rule), rule.id, {"id": "other", "value": 2})
        assert result.root_group.rules[0].id == rule.id

    def test_none_stays_none(self):
        """Updating an absent filter keeps it absent."""
        assert update_rule(None, "x", {"value": 1}) is None


class TestRemoveRule:
    def test_single_rule_collapses_to_none(self):
        """Removing the only rule collapses the filter to None."""
        rule = make_rule("status", "equals", "ACTIVE")
        assert remove_rule(add_rule(None, rule), rule.id) is None

    def test_prunes_emptied_subgroup(self):
        """A subgroup emptied by removal is pruned."""
        inner_rule = make_rule("plan", "equals", "free")
        inner = make_group(inner_rule)
        f = make_filter(make_rule("a", "equals", 1), groups=[inner])
        result = remove_rule(f, inner_rule.id)
        assert result.root_group.groups == ()
        assert len(result.root_group.rules) == 1

    def test_emptying_only_subgroup_collapses(self):
        """Emptying the only subgroup collapses the whole filter."""
        inner_rule = make_rule("plan", "equals", "free")
        f = make_filter(groups=[make_group(inner_rule)])
        assert remove_rule(f, inner_rule.id) is None

    def test_unknown_id(self):
        """Removing an unknown rule changes nothing."""
        f = make_filter(make_rule("a", "equals", 1))
        assert remove_rule(f, "missing") == f
        assert remove_rule(None, "missing") is None


class TestSetLogic:
    def test_root(self):
        """Root logic can be switched."""
        f = make_filter(make_rule("a", "equals", 1), make_rule("b", "equals", 2))
        assert set_logic(f, "OR").root_group.logic == Logic.OR
        assert f.root_group.logic == Logic.AND

    def test_nested(self):
        """Nested group logic can be switched independently."""
        inner = make_group(make_rule("a", "equals", 1))
        f = make_filter(make_rule("b", "equals", 2), groups=[inner])
        result = set_logic(f, Logic.OR, inner.id)
        assert result.root_group.groups[0].logic == Logic.OR
        assert result.root_group.logic == Logic.AND

    def test_invalid_logic_is_noop(self):
        """Unknown logic values are ignored."""
        f = make_filter(make_rule("a", "equals", 1))
        assert set_logic(f, "XOR") is f


class TestGroups:
    def test_add_group_to_none(self):
        """Adding a group to an absent filter wraps it in a new root."""
        group = make_group(make_rule("a", "equals", 1), logic="OR")
        f = add_group(None, group)
        assert f.root_group.groups == (group,)

    def test_add_empty_group_is_noop(self):
        """Empty groups are never added."""
        f = make_filter(make_rule("a", "equals", 1))
        assert add_group(f, FilterGroup()) is f
        assert add_group(None, FilterGroup()) is None

    def test_add_group_under_parent(self):
        """A parent id nests the group under that parent."""
        inner = make_group(make_rule("a", "equals", 1))
        f = make_filter(groups=[inner])
        nested = make_group(make_rule("b", "equals", 2))
        result = add_group(f, nested, inner.id)
        assert result.root_group.groups[0].groups == (nested,)

    def test_add_group_drops_invalid_rules(self):
        """Invalid rules are dropped from an added group."""
        group = make_group(make_rule("a", "equals", 1), make_rule("b", "between", 9))
        f = add_group(None, group)
        assert [r.field for r in f.root_group.groups[0].rules] == ["a"]

    def test_depth_limit(self):
        """Groups that would exceed max_depth are refused."""
        f = make_filter(make_rule("a", "equals", 1))
        assert add_group(f, _nested(3), max_depth=2) is f
        assert add_group(f, _nested(2), max_depth=2) is not f

    def test_update_group(self):
        """Group partials update logic and keep the id."""
        inner = make_group(make_rule("a", "equals", 1))
        f = make_filter(make_rule("b", "equals", 2), groups=[inner])
        result = update_group(f, inner.id, {"logic": "OR"})
        assert result.root_group.groups[0].logic == Logic.OR
        assert result.root_group.groups[0].id == inner.id

    def test_update_group_emptying_prunes(self):
        """A group emptied by an update is pruned."""
        inner = make_group(make_rule("a", "equals", 1))
        f = make_filter(make_rule("b", "equals", 2), groups=[inner])
        result = update_group(f, inner.id, {"rules": []})
        assert result.root_group.groups == ()

    def test_remove_group(self):
        """A nested group can be removed."""
        inner = make_group(make_rule("a", "equals", 1))
        f = make_filter(make_rule("b", "equals", 2), groups=[inner])
        assert remove_group(f, inner.id).root_group.groups == ()

    def test_remove_root_clears(self):
        """Removing the root group clears the filter."""
        f = make_filter(make_rule("a", "equals", 1))
        assert remove_group(f, f.root_group.id) is None

    def test_remove_only_group_collapses(self):
        """Removing the only subgroup of an empty root collapses the filter."""
        inner = make_group(make_rule("a", "equals", 1))
        f = make_filter(groups=[inner])
        assert remove_group(f, inner.id) is None


class TestHelpers:
    def test_find_group_path(self):
        """The path lists group ids from root to target."""
        deep = make_group(make_rule("c", "equals", 3))
        mid = make_group(groups=[deep])
        f = make_filter(groups=[mid])
        assert find_group_path(f.root_group, deep.id) == (f.root_group.id, mid.id, deep.id)
        assert find_group_path(f.root_group, "missing") is None

    def test_update_group_at_shares_untouched_siblings(self):
        """Siblings off the edited path are reused as-is."""
        left = make_group(make_rule("a", "equals", 1))
        right = make_group(make_rule("b", "equals", 2))
        f = make_filter(groups=[left, right])
        new_root = update_group_at(
            f.root_group,
            (f.root_group.id, left.id),
            lambda g: g.model_copy(update={"logic": Logic.OR}),
        )
        assert new_root.groups[0].logic == Logic.OR
        assert new_root.groups[1] is right

    def test_normalize(self):
        """Empty trees collapse and empty subgroups are pruned."""
        assert normalize(None) is None
        assert normalize(ComplexFilter(root_group=FilterGroup())) is None
        f = make_filter(make_rule("a", "equals", 1), groups=[FilterGroup()])
        assert normalize(f).root_group.groups == ()

    def test_iteration(self):
        """Rules are iterated depth-first and can be counted and found."""
        inner = make_group(make_rule("b", "equals", 2))
        f = make_filter(make_rule("a", "equals", 1), groups=[inner])
        assert [r.field for r in iter_rules(f)] == ["a", "b"]
        assert count_rules(f) == 2
        assert count_rules(None) == 0
        assert find_rule(f, inner.rules[0].id).field == "b"
        assert clear(f) is None


class TestConfiguredLimits:
    @pytest.fixture(autouse=True)
    def _restore_depth(self):
        yield
        configure_tree(TreeConfig())

    def test_configured_depth_applies_by_default(self):
        """configure_tree sets the limit used when max_depth is not passed."""
        f = make_filter(make_rule("a", "equals", 1))
        configure_tree(TreeConfig(max_depth=2))
        assert depth_limit() == 2
        assert add_group(f, _nested(3)) is f
        assert add_group(f, _nested(2)) is not f

    def test_explicit_depth_overrides_configured(self):
        """An explicit max_depth wins over the configured one."""
        configure_tree(TreeConfig(max_depth=2))
        f = make_filter(make_rule("a", "equals", 1))
        assert add_group(f, _nested(3), max_depth=5) is not f

    def test_rejected_rule_logs_reason(self, caplog):
        """A refused rule logs E-4001 with the reasons it is invalid."""
        with caplog.at_level("WARNING", logger="src.filter_engine.tree"):
            add_rule(None, make_rule("c", "frobnicate", 3))
        assert "E-4001" in caplog.text
        assert "unknown operator" in caplog.text
