"""Payload schemas for agent and entity edits."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class AgentUpsert(BaseModel):
    id: int | None = None  # None/0 = create
    name: str = ""
    description: str = ""


class AgentSkillsUpdate(BaseModel):
    id: int
    skills: list[int] = []


class EntityUpsert(BaseModel):
    id: int | None = None
    name: str = ""
    type: str = ""
    content: Any = None
