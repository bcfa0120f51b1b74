"""Filter descriptor (de)serialization for the request layer.

The descriptor leaves the engine as camelCase JSON:

    {"rootGroup": {"id": "...", "logic": "AND",
                   "rules": [{"id": "...", "field": "status", "fieldPath": ["status"],
                              "operator": "equals", "value": "ACTIVE",
                              "label": "Status is ACTIVE"}],
                   "groups": []}}

Relative date presets are stored symbolically on rules and only expanded to
concrete ``between`` ranges when a request body is built.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from src.errors import FilterEngineError
from src.filter_engine.date_presets import resolve_preset
from src.filter_engine.models.filter import ComplexFilter, ComplexFilterRule, FilterGroup
from src.filter_engine.operators import Operator
from src.filter_engine.tree import normalize

logger = logging.getLogger(__name__)


def to_payload(complex_filter: ComplexFilter | None) -> dict[str, Any] | None:
    """Dump a filter as a camelCase JSON-compatible dict (None stays None)."""
    normalized = normalize(complex_filter)
    if normalized is None:
        return None
    return normalized.model_dump(mode="json", by_alias=True)


def filter_from_payload(data: object) -> ComplexFilter | None:
    """Parse a descriptor from JSON data.

    Returns:
        The normalized filter, or None for absent, empty or invalid input.
    """
    if data is None:
        return None
    if isinstance(data, ComplexFilter):
        return normalize(data)
    if not isinstance(data, Mapping):
        logger.warning("%s", FilterEngineError.from_code(
            "E-3001", details=f"expected an object, got {type(data).__name__}"
        ))
        return None
    try:
        parsed = ComplexFilter.model_validate(data)
    except ValidationError as exc:
        logger.warning("%s", FilterEngineError.from_code(
            "E-3001", details=f"{exc.error_count()} validation error(s)"
        ))
        return None
    return normalize(parsed)


def _map_group(group: FilterGroup, fn: Callable[[ComplexFilterRule], ComplexFilterRule]) -> FilterGroup:
    return group.model_copy(
        update={
            "rules": tuple(fn(r) for r in group.rules),
            "groups": tuple(_map_group(g, fn) for g in group.groups),
        }
    )


def expand_presets(
    complex_filter: ComplexFilter | None,
    today: date | None = None,
) -> ComplexFilter | None:
    """Rewrite ``preset`` rules into ``between`` rules with ISO date bounds.

    Rules with an unknown preset value are left as they are.
    """
    if complex_filter is None:
        return None
    reference = today or date.today()

    def _expand(rule: ComplexFilterRule) -> ComplexFilterRule:
        if rule.operator != Operator.PRESET.value:
            return rule
        resolved = resolve_preset(rule.value, reference)
        if resolved is None:
            logger.warning("unknown date preset %r on %s", rule.value, rule.field)
            return rule
        start, end = resolved
        return rule.model_copy(
            update={
                "operator": Operator.BETWEEN.value,
                "value": [start.isoformat(), end.isoformat()],
            }
        )

    return complex_filter.model_copy(
        update={"root_group": _map_group(complex_filter.root_group, _expand)}
    )


class SortParams(BaseModel):
    """Sort column and direction."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    field: str
    direction: Literal["asc", "desc"] = "asc"


class QueryRequest(BaseModel):
    """Query parameters sent alongside a filter to a data endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=25, ge=1, le=1000)
    search: str | None = None
    complex_filter: ComplexFilter | None = None
    sort_by: SortParams | None = None
    group_by: str | None = None
    saved_search_id: str | None = None

    def to_request_body(self, today: date | None = None) -> dict[str, Any]:
        """Build the camelCase request body with presets expanded.

        Empty search terms and absent fields are omitted.
        """
        expanded = expand_presets(normalize(self.complex_filter), today)
        request = self.model_copy(
            update={
                "complex_filter": expanded,
                "search": self.search.strip() if self.search and self.search.strip() else None,
            }
        )
        return request.model_dump(mode="json", by_alias=True, exclude_none=True)
