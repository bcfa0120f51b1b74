"""Pydantic models for the filter engine.

This module exports the filter descriptor models, field discovery models
and the saved-search model.
"""

from src.filter_engine.models.field import (
    Breadcrumb,
    ColumnConfig,
    FieldNode,
    FieldOption,
    NavigationState,
)
from src.filter_engine.models.filter import (
    ComplexFilter,
    ComplexFilterRule,
    FilterGroup,
    Logic,
    new_id,
)
from src.filter_engine.models.saved_search import SavedSearch

__all__ = [
    # Filter descriptor
    "ComplexFilter",
    "ComplexFilterRule",
    "FilterGroup",
    "Logic",
    "new_id",
    # Field discovery
    "Breadcrumb",
    "ColumnConfig",
    "FieldNode",
    "FieldOption",
    "NavigationState",
    # Saved searches
    "SavedSearch",
]
