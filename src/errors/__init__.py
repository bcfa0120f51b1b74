"""Coded errors and typed exceptions of the filter engine.

Internal seams raise the typed exceptions from ``src.errors.domain``; public
operations catch them, convert them with ``FilterEngineError.from_domain_error``
and log the coded result instead of raising.
"""

from src.errors.domain import (
    DomainError,
    FieldDiscoveryError,
    InvalidRuleError,
    MalformedFilterError,
    SavedSearchStoreError,
)
from src.errors.formatter import (
    FilterEngineError,
    format_error,
)
from src.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
    get_errors_by_category,
)

__all__ = [
    "ERROR_REGISTRY",
    "DomainError",
    "ErrorCategory",
    "ErrorCode",
    "FieldDiscoveryError",
    "FilterEngineError",
    "InvalidRuleError",
    "MalformedFilterError",
    "SavedSearchStoreError",
    "format_error",
    "get_error",
    "get_errors_by_category",
]
