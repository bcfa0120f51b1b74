"""Coded engine errors built from the registry, and their display form.

``FilterEngineError`` is what the engine logs and exposes on state objects
(``NavigationState.error_message``, ``FieldValueSearch.error``); the typed
exceptions in ``src.errors.domain`` are translated into it at the boundary
with ``from_domain_error``.
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

from src.errors.domain import (
    DomainError,
    FieldDiscoveryError,
    InvalidRuleError,
    MalformedFilterError,
    SavedSearchStoreError,
)
from src.errors.registry import get_error

ROOT_PATH_LABEL = "<root>"


def _render_path(path: Sequence[Any]) -> str:
    return ".".join(str(p) for p in path) or ROOT_PATH_LABEL


def _fill(template: str, values: dict[str, Any]) -> str:
    try:
        return template.format(**values)
    except (KeyError, IndexError):
        return template


@dataclass
class FilterEngineError(Exception):
    """A registry-coded error with its rendered message.

    ``path`` holds the field-path segments the error concerns (empty when the
    error is not tied to a field); ``details`` keeps structured context when
    the caller passed a dict.
    """

    code: str
    message: str
    remediation: str
    path: list[str] = field(default_factory=list)
    is_retryable: bool = False
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    @classmethod
    def from_code(cls, code: str, **context: Any) -> "FilterEngineError":
        """Render the registry template for ``code`` with ``context``.

        A ``path`` sequence is rendered dot-joined (``<root>`` when empty).
        Templates whose placeholders are not all supplied are kept verbatim.
        """
        raw_path = context.get("path")
        segments = [str(p) for p in raw_path] if isinstance(raw_path, (list, tuple)) else []
        extra = context.get("details")
        structured = extra if isinstance(extra, dict) else {}

        definition = get_error(code)
        if definition is None:
            return cls(code, f"Unknown error: {code}", "Contact support.", segments, False, structured)

        values = dict(context)
        if "path" in values:
            values["path"] = _render_path(segments)

        return cls(
            code=definition.code,
            message=_fill(definition.message_template, values),
            remediation=definition.remediation,
            path=segments,
            is_retryable=definition.is_retryable,
            details=structured,
        )

    @classmethod
    def from_domain_error(cls, exc: DomainError) -> "FilterEngineError":
        """Translate a typed domain exception into its registry code."""
        if isinstance(exc, FieldDiscoveryError):
            code = "E-2002" if exc.malformed else "E-2001"
            return cls.from_code(code, module=exc.module, path=exc.path, details=exc.reason)
        if isinstance(exc, MalformedFilterError):
            return cls.from_code("E-3001", details=exc.reason)
        if isinstance(exc, InvalidRuleError):
            return cls.from_code("E-4001", field=exc.field, details=exc.reason)
        if isinstance(exc, SavedSearchStoreError):
            return cls.from_code("E-5001", details=exc.reason)
        return cls.from_code("E-0000")


def format_error(error: FilterEngineError, include_remediation: bool = True) -> str:
    """Multi-line display form: headline, optional path, optional action."""
    out = [str(error)]
    if error.path:
        out.append("  Path: " + " > ".join(error.path))
    if include_remediation:
        out.append("  Action: " + error.remediation)
    return "\n".join(out)
