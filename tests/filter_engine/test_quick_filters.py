"""Tests for quick filters built from column configuration."""

from src.filter_engine.models import ColumnConfig
from src.filter_engine.quick_filters import build_quick_filter, suggest_quick_filters


class TestBuildQuickFilter:
    def test_single_rule_labelled_with_display_name(self, users_columns):
        """The rule label uses the column display name."""
        status = users_columns[0]
        f = build_quick_filter(status, "equals", "ACTIVE")
        rule = f.root_group.rules[0]
        assert rule.label == "Status is ACTIVE"
        assert rule.field_path == ("status",)

    def test_empty_values_yield_none(self, users_columns):
        """Empty values produce no filter."""
        status = users_columns[0]
        assert build_quick_filter(status, "equals", None) is None
        assert build_quick_filter(status, "equals", "") is None
        assert build_quick_filter(status, "in", []) is None

    def test_false_is_not_empty(self, users_columns):
        """False is a real value, labelled No."""
        f = build_quick_filter(users_columns[1], "equals", False)
        assert f.root_group.rules[0].label == "Super Admin is No"

    def test_no_value_operator(self):
        """No-value operators build a rule without a value."""
        column = ColumnConfig(field="tenant", display="Tenant", type="relation")
        f = build_quick_filter(column, "is_set", None)
        assert f.root_group.rules[0].value is None
        assert f.root_group.rules[0].label == "Tenant is set"

    def test_dotted_field_is_nested_path(self):
        """A dotted column field becomes a nested field path."""
        column = ColumnConfig(field="tenant.plan", display="Plan", type="enum")
        rule = build_quick_filter(column, "equals", "pro").root_group.rules[0]
        assert rule.field == "plan"
        assert rule.field_path == ("tenant", "plan")

    def test_operator_not_valid_for_type(self, users_columns):
        """Operators not offered for the type produce no filter."""
        assert build_quick_filter(users_columns[1], "contains", "x") is None


class TestSuggestQuickFilters:
    def test_popular_boolean_and_enum_columns(self, users_columns):
        """Popular boolean and enum columns yield suggestions."""
        suggestions = suggest_quick_filters(users_columns)
        assert [s.label for s in suggestions] == [
            "Status is ACTIVE",
            "Status is SUSPENDED",
            "Super Admin is Yes",
        ]
        assert suggestions[2].id == "isSuperAdmin:equals:True"

    def test_non_filterable_columns_skipped(self):
        """Columns marked not filterable get no suggestion."""
        columns = [ColumnConfig(field="isActive", type="boolean", popular=True, filterable=False)]
        assert suggest_quick_filters(columns) == []

    def test_unpopular_columns_skipped(self):
        """Columns outside the popular set get no suggestion."""
        assert suggest_quick_filters([ColumnConfig(field="isActive", type="boolean")]) == []
