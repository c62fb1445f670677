"""Editor-facing actions — upsert/remove entry points over the store.

The editor sends one plain dict per edit. A payload with a truthy ``id``
updates, one without creates. Payloads that don't parse are logged and
dropped, same as edits aimed at objects that no longer exist.
"""

from __future__ import annotations

import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from studio.engine.corpus_compiler import compile_training_corpus
from studio.engine.store import Store
from studio.models import Corpus
from studio.schemas.agent import AgentSkillsUpdate, AgentUpsert, EntityUpsert
from studio.schemas.skill import (
    IntentRef,
    IntentUpsert,
    SampleRef,
    SampleUpsert,
    SkillUpsert,
    SlotRef,
    SlotUpsert,
)

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseModel)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _parse(schema: type[P], payload: Any) -> P | None:
    if isinstance(payload, schema):
        return payload
    if not isinstance(payload, dict):
        # Bare ids are accepted wherever only an id is needed
        payload = {"id": payload}
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Rejected {schema.__name__} payload {payload!r}: {e.error_count()} error(s)")
        return None


class StudioActions:
    """One method per editor action; every method absorbs bad input."""

    def __init__(self, store: Store):
        self.store = store

    def dispatch(self, action: str, payload: Any = None) -> Any:
        """Route ``action`` ("upsertAgent" or "upsert_agent") to its handler."""
        if not isinstance(action, str):
            logger.warning(f"Action name {action!r} is not a string, ignored")
            return None
        name = _CAMEL_RE.sub("_", action).lower()
        handler = getattr(self, name, None)
        if name.startswith("_") or name == "dispatch" or not callable(handler):
            logger.warning(f"Unknown action {action!r} ignored")
            return None
        return handler(payload)

    # ── Agents ──────────────────────────────────────

    def upsert_agent(self, payload: Any):
        data = _parse(AgentUpsert, payload)
        if data is None:
            return None
        if data.id:
            return self.store.set_agent(data.id, data.name, data.description)
        return self.store.add_agent(data.name, data.description)

    def edit_agent_skills(self, payload: Any):
        data = _parse(AgentSkillsUpdate, payload)
        if data is None:
            return None
        return self.store.set_agent_skills(data.id, data.skills)

    def remove_agent(self, payload: Any) -> None:
        data = _parse(AgentUpsert, payload)
        if data is not None:
            self.store.delete_agent(data.id)

    # ── Entities ────────────────────────────────────

    def upsert_entity(self, payload: Any):
        data = _parse(EntityUpsert, payload)
        if data is None:
            return None
        if data.id:
            return self.store.set_entity(data.id, data.name, data.type, data.content)
        return self.store.add_entity(data.name, data.type, data.content)

    def remove_entity(self, payload: Any) -> None:
        data = _parse(EntityUpsert, payload)
        if data is not None:
            self.store.delete_entity(data.id)

    # ── Skills ──────────────────────────────────────

    def upsert_skill(self, payload: Any):
        data = _parse(SkillUpsert, payload)
        if data is None:
            return None
        if data.id:
            return self.store.set_skill(data.id, data.name, data.description)
        return self.store.add_skill(data.name, data.description)

    def remove_skill(self, payload: Any) -> None:
        data = _parse(SkillUpsert, payload)
        if data is not None:
            self.store.delete_skill(data.id)

    # ── Intents ─────────────────────────────────────

    def upsert_intent(self, payload: Any):
        data = _parse(IntentUpsert, payload)
        if data is None:
            return None
        if data.id:
            return self.store.set_intent(data.id, data.skill_id, data.name, data.description)
        return self.store.add_intent(data.name, data.description, data.skill_id)

    def remove_intent(self, payload: Any) -> None:
        data = _parse(IntentRef, payload)
        if data is not None:
            self.store.delete_intent(data.id, data.skill_id)

    # ── Slots ───────────────────────────────────────

    def upsert_slot(self, payload: Any):
        data = _parse(SlotUpsert, payload)
        if data is None:
            return None
        if data.id:
            return self.store.set_slot(data.id, data.skill_id, data.intent_id, data.name, data.entity)
        return self.store.add_slot(data.skill_id, data.intent_id)

    def remove_slot(self, payload: Any) -> None:
        data = _parse(SlotRef, payload)
        if data is not None:
            self.store.delete_slot(data.id, data.skill_id, data.intent_id)

    # ── Samples ─────────────────────────────────────

    def upsert_sample(self, payload: Any):
        data = _parse(SampleUpsert, payload)
        if data is None:
            return None
        if data.id:
            return self.store.set_sample(data.id, data.skill_id, data.intent_id, data.text, data.slot)
        return self.store.add_sample(data.skill_id, data.intent_id)

    def remove_sample(self, payload: Any) -> None:
        data = _parse(SampleRef, payload)
        if data is not None:
            self.store.delete_sample(data.id, data.skill_id, data.intent_id)

    # ── Training ────────────────────────────────────

    def train_agent(self, payload: Any) -> Corpus:
        agent_id = payload.get("id") if isinstance(payload, dict) else payload
        return compile_training_corpus(self.store, agent_id)
