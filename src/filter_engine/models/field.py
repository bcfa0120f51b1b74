"""Field discovery and column configuration models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)


class FieldOption(BaseModel):
    """A selectable value for enumerated fields."""

    model_config = _MODEL_CONFIG

    value: Any = Field(..., description="Raw value sent in the filter.")
    label: str = Field(default="", description="Display text for the value.")


class FieldNode(BaseModel):
    """A node of a module's navigable field tree."""

    model_config = _MODEL_CONFIG

    name: str = Field(..., description="Field name.")
    label: str = Field(default="", description="Display name.")
    type: str = Field(default="", description="Semantic field type.")
    path: tuple[str, ...] = Field(default=(), description="Full path from the tree root.")
    has_children: bool = Field(default=False, description="Relation/object field.")
    operators: tuple[str, ...] | None = Field(
        default=None, description="Optional precomputed operator allow-list."
    )
    options: tuple[FieldOption, ...] | None = Field(
        default=None, description="Static enumerated choices for enum leaves."
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        """Default the label to the name and the path to the bare name."""
        if isinstance(data, dict) and data.get("name"):
            data = dict(data)
            if not data.get("label"):
                data["label"] = data["name"]
            if not data.get("path"):
                data["path"] = (data["name"],)
        return data


class ColumnConfig(BaseModel):
    """External column/schema configuration for one field."""

    model_config = _MODEL_CONFIG

    field: str = Field(..., description="Field name or dotted path.")
    display: str | None = Field(default=None, description="Display name.")
    type: str | None = Field(default=None, description="Declared semantic type.")
    options: tuple[FieldOption, ...] | None = Field(
        default=None, description="Enumerated option list."
    )
    filter_source: dict[str, Any] | None = Field(
        default=None, description="Opaque dynamic option source descriptor."
    )
    filterable: bool = Field(default=True, description="Offered in field selection.")
    popular: bool = Field(default=False, description="Offered as a quick filter.")

    @property
    def display_name(self) -> str:
        return self.display or self.field


class Breadcrumb(BaseModel):
    """One step of the discovery navigation trail."""

    model_config = _MODEL_CONFIG

    label: str
    path: tuple[str, ...] = ()


class NavigationState(BaseModel):
    """Snapshot of the discovery client's navigation."""

    model_config = _MODEL_CONFIG

    path: tuple[str, ...] = ()
    breadcrumbs: tuple[Breadcrumb, ...] = ()
    children: tuple[FieldNode, ...] = ()
    loading: bool = False
    error: bool = False
    error_message: str | None = None
