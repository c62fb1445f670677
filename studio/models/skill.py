"""Skill model — a named grouping of intents and everything they own.

Ownership runs strictly downwards::

    Skill ─┬─ Intent ─┬─ Slot      (keyed by slot id)
           │          └─ Sample ── SpanAnnotation
           └─ Intent ...

References that cross the tree (``Slot.entity``, ``SpanAnnotation.slot``)
are plain ids and may dangle after a delete.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class Slot(BaseModel):
    id: int
    name: str = ""
    entity: int | None = None  # Entity id, None = unbound
    color: str


class SpanAnnotation(BaseModel):
    """Characters ``[start, end)`` of a sample's text instantiate ``slot``."""

    start: int
    end: int
    value: str = ""
    slot: int | None = None

    @field_validator("slot", mode="before")
    @classmethod
    def _empty_slot_is_none(cls, v):
        # The editor clears a span by sending "" or 0
        return v or None


class Sample(BaseModel):
    id: int
    text: str = ""
    # Unique by (start, end); kept in insertion order
    slots: list[SpanAnnotation] = Field(default_factory=list)

    def find_span(self, start: int, end: int) -> SpanAnnotation | None:
        for span in self.slots:
            if span.start == start and span.end == end:
                return span
        return None


class Intent(BaseModel):
    id: int
    skill_id: int = Field(alias="skillId")
    name: str = ""
    description: str = ""
    slots: dict[int, Slot] = Field(default_factory=dict)
    training: list[Sample] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class Skill(BaseModel):
    id: int
    name: str = ""
    description: str = ""
    intents: list[Intent] = Field(default_factory=list)
