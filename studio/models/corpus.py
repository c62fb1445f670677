"""Corpus model — the flattened, backend-ready training data."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class EntityAnnotation(BaseModel):
    start: int
    end: int
    value: str
    # None when the slot, or the entity it points at, no longer resolves
    entity_name: str | None = Field(default=None, alias="entityName")

    model_config = {"populate_by_name": True}


class Example(BaseModel):
    text: str
    intent_name: str = Field(alias="intentName")
    entities: list[EntityAnnotation] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class Corpus(BaseModel):
    examples: list[Example] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        """Render with the camelCase keys training backends expect."""
        return self.model_dump(by_alias=True)
