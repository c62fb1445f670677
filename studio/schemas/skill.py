"""Payload schemas for skill, intent, slot and sample edits.

Field names follow the editor's camelCase payloads (``skillId``,
``intentId``); snake_case is accepted too.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from studio.models import SpanAnnotation


class _Payload(BaseModel):
    model_config = {"populate_by_name": True}


class SkillUpsert(_Payload):
    id: int | None = None
    name: str = ""
    description: str = ""


class IntentUpsert(_Payload):
    id: int | None = None
    skill_id: int | None = Field(default=None, alias="skillId")
    name: str = ""
    description: str = ""


class IntentRef(_Payload):
    id: int | None = None
    skill_id: int | None = Field(default=None, alias="skillId")


class SlotUpsert(_Payload):
    id: int | None = None
    skill_id: int | None = Field(default=None, alias="skillId")
    intent_id: int | None = Field(default=None, alias="intentId")
    name: str | None = None
    entity: int | str | None = None  # "" from the editor means "leave unchanged"


class SlotRef(_Payload):
    id: int | None = None
    skill_id: int | None = Field(default=None, alias="skillId")
    intent_id: int | None = Field(default=None, alias="intentId")


class SampleUpsert(_Payload):
    id: int | None = None
    skill_id: int | None = Field(default=None, alias="skillId")
    intent_id: int | None = Field(default=None, alias="intentId")
    text: str | None = None
    slot: SpanAnnotation | None = None


class SampleRef(SlotRef):
    pass
