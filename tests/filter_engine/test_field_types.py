"""Tests for semantic field type resolution."""

import pytest

from src.filter_engine.field_types import (
    FieldTypeResolver,
    SemanticType,
    infer_type_from_name,
    normalize_type,
    resolve_field_type,
)
from src.filter_engine.models import ColumnConfig


class TestNamingHeuristics:
    """Name-based inference used when no configuration declares a type."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("createdAt", SemanticType.DATETIME),
            ("updated_at", SemanticType.DATETIME),
            ("lastLoginTime", SemanticType.DATETIME),
            ("birthday", SemanticType.DATE),
            ("dueDate", SemanticType.DATE),
            ("isSuperAdmin", SemanticType.BOOLEAN),
            ("has_mfa", SemanticType.BOOLEAN),
            ("canInvite", SemanticType.BOOLEAN),
            ("status", SemanticType.ENUM),
            ("accessType", SemanticType.ENUM),
            ("id", SemanticType.STRING),
            ("tenantId", SemanticType.STRING),
            ("amount", SemanticType.NUMBER),
            ("loginCount", SemanticType.NUMBER),
            ("description", SemanticType.TEXT),
            ("email", SemanticType.STRING),
        ],
    )
    def test_infers_type(self, name, expected):
        """Field names map to types by naming convention."""
        assert infer_type_from_name(name) == expected

    def test_plain_is_prefix_is_not_boolean(self):
        """'issue' starts with 'is' but is not a flag."""
        assert infer_type_from_name("issue") == SemanticType.STRING


class TestNormalizeType:
    def test_aliases(self):
        """Declared type aliases normalize to semantic types."""
        assert normalize_type("integer") == SemanticType.NUMBER
        assert normalize_type("Timestamp") == SemanticType.DATETIME
        assert normalize_type("select") == SemanticType.ENUM
        assert normalize_type("bool") == SemanticType.BOOLEAN

    def test_unknown_and_invalid(self):
        """Unknown or empty declared types normalize to None."""
        assert normalize_type("geometry") is None
        assert normalize_type("") is None
        assert normalize_type(None) is None


class TestFieldTypeResolver:
    """Configuration-first resolution."""

    def test_configuration_wins_over_heuristics(self):
        """A declared type beats the name heuristic ('status' would be enum)."""
        resolver = FieldTypeResolver([ColumnConfig(field="status", type="text")])
        assert resolver.resolve("status") == SemanticType.TEXT

    def test_dotted_path_config_beats_leaf_name(self):
        """A dotted-path column beats one keyed by leaf name."""
        resolver = FieldTypeResolver([
            ColumnConfig(field="status", type="enum"),
            ColumnConfig(field="tenant.status", type="string"),
        ])
        assert resolver.resolve("status", ["tenant", "status"]) == SemanticType.STRING
        assert resolver.resolve("status", ["status"]) == SemanticType.ENUM

    def test_unknown_declared_type_falls_back_to_heuristics(self):
        """An unrecognized configured type is ignored."""
        resolver = FieldTypeResolver([ColumnConfig(field="createdAt", type="weird")])
        assert resolver.resolve("createdAt") == SemanticType.DATETIME

    def test_has_children_is_relation(self):
        """Nodes with children resolve to relation."""
        assert FieldTypeResolver().resolve("tenant", ["tenant"], has_children=True) == SemanticType.RELATION

    def test_config_beats_relation_hint(self):
        """Configuration overrides the relation hint."""
        resolver = FieldTypeResolver([ColumnConfig(field="tags", type="string")])
        assert resolver.resolve("tags", has_children=True) == SemanticType.STRING

    @pytest.mark.parametrize("bad", [None, "", 42, ["a"]])
    def test_invalid_input_is_string(self, bad):
        """Resolution is total: bad input never raises."""
        assert FieldTypeResolver().resolve(bad) == SemanticType.STRING

    def test_string_path_is_ignored(self):
        """A string passed as path is not split into characters."""
        assert FieldTypeResolver().resolve("createdAt", "createdAt") == SemanticType.DATETIME

    def test_module_level_wrapper(self):
        """resolve_field_type honours optional columns."""
        assert resolve_field_type("createdAt") == SemanticType.DATETIME
        columns = [ColumnConfig(field="createdAt", type="date")]
        assert resolve_field_type("createdAt", columns=columns) == SemanticType.DATE
