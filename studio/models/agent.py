"""Agent model — the top-level configurable entity."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Agent(BaseModel):
    id: int
    name: str = ""
    description: str = ""
    # Weak references into the skill table, in display order.
    # Entries may outlive the skill they name.
    skills: list[int] = Field(default_factory=list)
