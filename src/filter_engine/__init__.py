"""Filter expression engine.

Builds boolean-composable query filters over a dynamically discovered field
tree and renders them back as readable labels:

- field discovery (``discovery``, ``transport``)
- field types and operators (``field_types``, ``operators``, ``values``)
- rule construction and tree edits (``rule_builder``, ``tree``)
- additive merge (``merge``) and display (``labels``)
- request serialization, quick filters and saved searches
"""

from src.filter_engine.discovery import FieldDiscoveryClient, FieldTreeCache
from src.filter_engine.field_types import FieldTypeResolver, SemanticType, resolve_field_type
from src.filter_engine.labels import (
    describe_filter,
    describe_rule,
    filter_tags,
    format_rule_label,
    format_value,
)
from src.filter_engine.merge import merge_additive, rules_equal
from src.filter_engine.models import (
    Breadcrumb,
    ColumnConfig,
    ComplexFilter,
    ComplexFilterRule,
    FieldNode,
    FieldOption,
    FilterGroup,
    Logic,
    NavigationState,
    SavedSearch,
)
from src.filter_engine.operators import (
    Operator,
    OperatorDescriptor,
    default_value_for,
    default_value_for_operator,
    operators_for,
)
from src.filter_engine.quick_filters import QuickFilter, build_quick_filter, suggest_quick_filters
from src.filter_engine.rule_builder import (
    build_rule,
    change_operator,
    create_rule,
    is_valid_rule,
    single_rule_filter,
)
from src.filter_engine.serialization import (
    QueryRequest,
    expand_presets,
    filter_from_payload,
    to_payload,
)
from src.filter_engine.transport import HttpFieldTreeTransport, HttpSavedSearchClient
from src.filter_engine.tree import (
    add_group,
    add_rule,
    remove_group,
    remove_rule,
    set_logic,
    update_group,
    update_rule,
)
from src.filter_engine.value_search import FieldValueSearch

__all__ = [
    # Models
    "Breadcrumb",
    "ColumnConfig",
    "ComplexFilter",
    "ComplexFilterRule",
    "FieldNode",
    "FieldOption",
    "FilterGroup",
    "Logic",
    "NavigationState",
    "SavedSearch",
    # Types and operators
    "FieldTypeResolver",
    "SemanticType",
    "resolve_field_type",
    "Operator",
    "OperatorDescriptor",
    "operators_for",
    "default_value_for",
    "default_value_for_operator",
    # Rules and trees
    "build_rule",
    "create_rule",
    "change_operator",
    "is_valid_rule",
    "single_rule_filter",
    "add_rule",
    "update_rule",
    "remove_rule",
    "set_logic",
    "add_group",
    "update_group",
    "remove_group",
    "merge_additive",
    "rules_equal",
    # Labels
    "format_value",
    "format_rule_label",
    "describe_rule",
    "describe_filter",
    "filter_tags",
    # Discovery
    "FieldDiscoveryClient",
    "FieldTreeCache",
    "FieldValueSearch",
    "HttpFieldTreeTransport",
    "HttpSavedSearchClient",
    # Requests
    "QueryRequest",
    "to_payload",
    "filter_from_payload",
    "expand_presets",
    "QuickFilter",
    "build_quick_filter",
    "suggest_quick_filters",
]
