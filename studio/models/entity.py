"""Entity model — flat, reusable lexicon item referenced by slots."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class Entity(BaseModel):
    id: int
    name: str = ""
    type: str = ""
    # Free-form lexicon payload (values, synonyms, a regex...); not interpreted here
    content: Any = None
