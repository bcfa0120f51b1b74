"""Registry of the filter engine's coded failures.

Codes are grouped by the stage that reports them:
- E-1xxx: Field type resolution errors
- E-2xxx: Field discovery errors
- E-3xxx: Filter merge errors
- E-4xxx: Rule validation errors
- E-5xxx: System/internal errors

None of these are fatal. Each one is logged, and the operation that hit it
degrades to a no-op or an empty result.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    RESOLUTION = "resolution"  # E-1xxx: Field type resolution
    DISCOVERY = "discovery"  # E-2xxx: Field discovery
    MERGE = "merge"  # E-3xxx: Filter merge
    VALIDATION = "validation"  # E-4xxx: Rule validation
    SYSTEM = "system"  # E-5xxx: System/internal errors


@dataclass
class ErrorCode:
    """One registered failure.

    ``message_template`` uses ``str.format`` placeholders filled by
    ``FilterEngineError.from_code``; ``is_retryable`` marks failures that a
    plain retry (no change of input) may fix.
    """

    code: str
    category: ErrorCategory
    title: str
    message_template: str
    remediation: str
    is_retryable: bool = False


ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Resolution errors (E-1xxx)
    "E-1001": ErrorCode(
        code="E-1001",
        category=ErrorCategory.RESOLUTION,
        title="Unresolvable Field Type",
        message_template="Could not resolve a type for field '{field}'; using string.",
        remediation="Declare the field type in the column configuration.",
    ),
    "E-1002": ErrorCode(
        code="E-1002",
        category=ErrorCategory.RESOLUTION,
        title="Unknown Declared Type",
        message_template="Column '{field}' declares unknown type '{declared}'.",
        remediation="Use one of: string, number, boolean, date, datetime, enum, text, relation.",
    ),
    # Discovery errors (E-2xxx)
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.DISCOVERY,
        title="Field Discovery Failed",
        message_template="Could not load fields for '{module}' at '{path}': {details}",
        remediation="Check the connection to the field-tree endpoint and retry.",
        is_retryable=True,
    ),
    "E-2002": ErrorCode(
        code="E-2002",
        category=ErrorCategory.DISCOVERY,
        title="Malformed Field Tree",
        message_template="Field tree for '{module}' at '{path}' could not be parsed: {details}",
        remediation="The field-tree endpoint returned an unexpected shape. Contact support.",
    ),
    "E-2003": ErrorCode(
        code="E-2003",
        category=ErrorCategory.DISCOVERY,
        title="Field Value Search Failed",
        message_template="Could not load values for '{path}': {details}",
        remediation="Retry the search. Previously loaded values are still shown.",
        is_retryable=True,
    ),
    # Merge errors (E-3xxx)
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.MERGE,
        title="Malformed Incoming Filter",
        message_template="Incoming filter was rejected: {details}",
        remediation="The existing filter was kept. Rebuild the quick filter and retry.",
    ),
    # Validation errors (E-4xxx)
    "E-4001": ErrorCode(
        code="E-4001",
        category=ErrorCategory.VALIDATION,
        title="Invalid Filter Rule",
        message_template="Rule on field '{field}' is invalid: {details}",
        remediation="Select a field and an operator valid for its type.",
    ),
    "E-4002": ErrorCode(
        code="E-4002",
        category=ErrorCategory.VALIDATION,
        title="Filter Nesting Too Deep",
        message_template="Filter groups may not be nested deeper than {max_depth} levels.",
        remediation="Flatten the filter by combining nested groups.",
    ),
    # System errors (E-5xxx)
    "E-5001": ErrorCode(
        code="E-5001",
        category=ErrorCategory.SYSTEM,
        title="Saved Search Store Error",
        message_template="Saved search operation failed: {details}",
        remediation="Retry the operation. Contact support if the issue persists.",
        is_retryable=True,
    ),
}


def get_error(code: str) -> ErrorCode | None:
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Registered errors of ``category``, in code order."""
    return sorted(
        (e for e in ERROR_REGISTRY.values() if e.category == category),
        key=lambda e: e.code,
    )
