"""Filter descriptor models: rules, recursive groups and the root wrapper.

The descriptor is the only artifact the engine hands to a query-execution
layer. Models are frozen Pydantic v2 models serialized in camelCase
(``fieldPath``, ``rootGroup``); both camelCase and snake_case are accepted
on input. Edits never happen in place: every tree operation builds new
instances (see ``src/filter_engine/tree.py``).

A ``None`` ComplexFilter means "no filtering applied" and is distinct from a
present root group. A group with no rules and no subgroups is semantically
absent and is normalized away before it reaches a consumer.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def new_id() -> str:
    """Return a fresh opaque identifier for rules and groups."""
    return uuid.uuid4().hex


class Logic(str, Enum):
    """Boolean connective joining the children of a group."""

    AND = "AND"
    OR = "OR"


_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)


class ComplexFilterRule(BaseModel):
    """A single leaf condition: field + operator + value."""

    model_config = _MODEL_CONFIG

    id: str = Field(default_factory=new_id, description="Opaque rule id.")
    field: str = Field(..., description="Leaf field name.")
    field_path: tuple[str, ...] = Field(
        default=(),
        description="Path segments from the root to this field; ends with `field`.",
    )
    operator: str = Field(..., description="Operator value, e.g. 'equals'.")
    value: Any = Field(
        default=None,
        description="Shape depends on operator arity: None, scalar, [from, to] or list.",
    )
    label: str | None = Field(
        default=None,
        description="Precomputed display text; used verbatim when a full sentence.",
    )


class FilterGroup(BaseModel):
    """A node of the filter tree joining rules and nested groups with AND/OR."""

    model_config = _MODEL_CONFIG

    id: str = Field(default_factory=new_id, description="Opaque group id.")
    logic: Logic = Field(default=Logic.AND, description="Connective for children.")
    rules: tuple[ComplexFilterRule, ...] = Field(default=(), description="Leaf rules.")
    groups: tuple[FilterGroup, ...] = Field(default=(), description="Nested subgroups.")

    @property
    def child_count(self) -> int:
        return len(self.rules) + len(self.groups)

    def is_empty(self) -> bool:
        """True when the group holds no rules and no subgroups."""
        return not self.rules and not self.groups


FilterGroup.model_rebuild()


class ComplexFilter(BaseModel):
    """Root wrapper of a filter tree."""

    model_config = _MODEL_CONFIG

    root_group: FilterGroup = Field(..., description="Root filter group.")
