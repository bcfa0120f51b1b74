"""Semantic field type resolution.

Resolves the abstract type of a field (used to pick valid operators) from,
in order:

1. the injected column configuration, matched by dotted path, then by leaf
   field name. Configuration always wins.
2. relation hints (fields that expand into children).
3. naming heuristics over the leaf field name.
4. ``string``.

Heuristics are a fallback for modules that ship no schema. Resolution is
pure and total: it never raises, and anything it cannot classify is a
``string``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from enum import Enum

from src.errors import FilterEngineError
from src.filter_engine.models.field import ColumnConfig

logger = logging.getLogger(__name__)


class SemanticType(str, Enum):
    """Abstract field types that drive operator selection."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    ENUM = "enum"
    TEXT = "text"
    RELATION = "relation"


# Declared-type spellings seen in column configurations → semantic type.
TYPE_ALIASES: dict[str, SemanticType] = {
    "str": SemanticType.STRING,
    "varchar": SemanticType.STRING,
    "uuid": SemanticType.STRING,
    "email": SemanticType.STRING,
    "int": SemanticType.NUMBER,
    "integer": SemanticType.NUMBER,
    "float": SemanticType.NUMBER,
    "decimal": SemanticType.NUMBER,
    "double": SemanticType.NUMBER,
    "currency": SemanticType.NUMBER,
    "bool": SemanticType.BOOLEAN,
    "timestamp": SemanticType.DATETIME,
    "select": SemanticType.ENUM,
    "badge": SemanticType.ENUM,
    "textarea": SemanticType.TEXT,
    "object": SemanticType.RELATION,
    "array": SemanticType.RELATION,
}

# Closed-vocabulary field names.
ENUM_FIELD_NAMES: frozenset[str] = frozenset({
    "status",
    "type",
    "level",
    "role",
    "accessType",
    "access_type",
    "priority",
    "category",
    "plan",
    "tier",
    "state",
})

NUMBER_FIELD_NAMES: frozenset[str] = frozenset({
    "count",
    "amount",
    "price",
    "quantity",
    "total",
    "age",
    "size",
})

TEXT_FIELD_NAMES: frozenset[str] = frozenset({
    "description",
    "content",
    "notes",
    "comment",
    "body",
    "bio",
})

DATE_FIELD_NAMES: frozenset[str] = frozenset({
    "date",
    "birthday",
    "birthdate",
    "dob",
})

_BOOLEAN_PREFIX = re.compile(r"^(is|has|can)(?:[A-Z]|_[a-z])")
_SNAKE_DATETIME_SUFFIX = re.compile(r"_(at|time|timestamp)$")


def normalize_type(declared: object) -> SemanticType | None:
    """Map a declared type string to a SemanticType, or None if unknown."""
    if isinstance(declared, SemanticType):
        return declared
    if not isinstance(declared, str) or not declared.strip():
        return None
    key = declared.strip().lower()
    try:
        return SemanticType(key)
    except ValueError:
        return TYPE_ALIASES.get(key)


def infer_type_from_name(field_name: str) -> SemanticType:
    """Classify a field by naming conventions alone."""
    if field_name.endswith("At") or _SNAKE_DATETIME_SUFFIX.search(field_name):
        return SemanticType.DATETIME
    if "Time" in field_name or "Timestamp" in field_name:
        return SemanticType.DATETIME
    if field_name.casefold() in DATE_FIELD_NAMES or field_name.endswith("Date") or field_name.endswith("_date"):
        return SemanticType.DATE
    if _BOOLEAN_PREFIX.match(field_name):
        return SemanticType.BOOLEAN
    if field_name in ENUM_FIELD_NAMES:
        return SemanticType.ENUM
    if field_name == "id" or field_name.endswith("Id") or field_name.endswith("_id"):
        return SemanticType.STRING
    if field_name in NUMBER_FIELD_NAMES or field_name.endswith("Count") or field_name.endswith("_count"):
        return SemanticType.NUMBER
    if field_name in TEXT_FIELD_NAMES:
        return SemanticType.TEXT
    return SemanticType.STRING


class FieldTypeResolver:
    """Resolve semantic types with column configuration taking precedence.

    Args:
        columns: Optional column configuration. Entries may name a leaf field
            (``"status"``) or a dotted path (``"tenant.status"``).
    """

    def __init__(self, columns: Sequence[ColumnConfig] | None = None) -> None:
        self._columns: dict[str, ColumnConfig] = {}
        for column in columns or ():
            # First entry wins for duplicate field names.
            self._columns.setdefault(column.field, column)

    def column_for(
        self,
        field_name: str,
        field_path: Sequence[str] | None = None,
    ) -> ColumnConfig | None:
        """Find the column configuration for a field, by path then by name."""
        if field_path:
            dotted = ".".join(str(p) for p in field_path)
            if dotted in self._columns:
                return self._columns[dotted]
        return self._columns.get(field_name)

    def resolve(
        self,
        field_name: object,
        field_path: Sequence[str] | None = None,
        *,
        has_children: bool = False,
    ) -> SemanticType:
        """Resolve the semantic type of a field.

        Args:
            field_name: Leaf field name.
            field_path: Full path to the field; used for path-keyed config.
            has_children: True for relation/object fields.

        Returns:
            The resolved SemanticType; ``string`` when nothing matches.
        """
        if not isinstance(field_name, str) or not field_name:
            logger.debug("%s", FilterEngineError.from_code("E-1001", field=repr(field_name)))
            return SemanticType.STRING

        path = field_path if isinstance(field_path, Sequence) and not isinstance(field_path, str) else None
        column = self.column_for(field_name, path)
        if column is not None and column.type:
            declared = normalize_type(column.type)
            if declared is not None:
                return declared
            logger.debug(
                "%s",
                FilterEngineError.from_code("E-1002", field=column.field, declared=column.type),
            )

        if has_children:
            return SemanticType.RELATION

        return infer_type_from_name(field_name)


def resolve_field_type(
    field_name: object,
    field_path: Sequence[str] | None = None,
    columns: Sequence[ColumnConfig] | None = None,
) -> SemanticType:
    """Module-level convenience wrapper around FieldTypeResolver.resolve."""
    return FieldTypeResolver(columns).resolve(field_name, field_path)
