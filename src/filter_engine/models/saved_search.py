"""Saved search model exchanged with the external saved-search store."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.filter_engine.models.filter import ComplexFilter, new_id


class SavedSearch(BaseModel):
    """A named filter descriptor owned by the saved-search store."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str = Field(default_factory=new_id)
    name: str
    filter: ComplexFilter | None = None
    is_favorite: bool = False
