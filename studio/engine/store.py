"""Hierarchical store — the authoritative in-memory agent/skill/intent tree.

Every lookup that fails is a silent no-op: the editor may send an edit for
an object a previous edit already removed, and that must not blow up.
References between branches (agent → skill, slot → entity, span → slot) are
weak ids; deleting their target leaves them dangling on purpose, so readers
must treat a failed lookup as "absent".

Text fields are normalised on the way in (``None`` → ``""``, other values
→ ``str``) so the tree only ever holds what its own models accept.
"""

from __future__ import annotations

import functools
import logging
import random
import threading
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from studio.config import settings
from studio.engine.change_log import ChangeLog
from studio.models import Agent, Entity, Intent, Sample, Skill, Slot, SpanAnnotation

logger = logging.getLogger(__name__)


def _as_id(value: Any) -> int | None:
    """Coerce a UI-supplied id (``3`` or ``"3"``) to ``int``; None if it can't be one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _assign(obj: Any, **fields: Any) -> bool:
    """Set ``fields`` on ``obj``; True if any value actually changed."""
    changed = False
    for key, value in fields.items():
        if getattr(obj, key) != value:
            setattr(obj, key, value)
            changed = True
    return changed


def next_id(ids: Iterable[int]) -> int:
    """1 for an empty collection, else max + 1.

    Deleting the highest id frees it for the next insert.
    """
    return max(ids, default=0) + 1


def _synchronized(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class Store:
    """Owns agents, skills (with their intents, slots and samples) and entities."""

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        palette: list[str] | None = None,
        change_log: ChangeLog | None = None,
    ):
        self._agents: dict[int, Agent] = {}
        self._skills: dict[int, Skill] = {}
        self._entities: dict[int, Entity] = {}
        self._rng = rng or random.Random(settings.color_seed)
        self.palette = list(palette or settings.slot_palette)
        self.changes = change_log or ChangeLog(
            limit=settings.change_log_limit, enabled=settings.change_log_enabled,
        )
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """The single exclusive lock guarding the whole tree."""
        return self._lock

    # ── Read accessors ──────────────────────────────

    @_synchronized
    def agents(self) -> list[Agent]:
        return list(self._agents.values())

    @_synchronized
    def skills(self) -> list[Skill]:
        return list(self._skills.values())

    @_synchronized
    def entities(self) -> list[Entity]:
        return list(self._entities.values())

    @_synchronized
    def agent(self, agent_id: Any) -> Agent | None:
        return self._agents.get(_as_id(agent_id))

    @_synchronized
    def skill(self, skill_id: Any) -> Skill | None:
        return self._skills.get(_as_id(skill_id))

    @_synchronized
    def entity(self, entity_id: Any) -> Entity | None:
        return self._entities.get(_as_id(entity_id))

    @_synchronized
    def intent(self, skill_id: Any, intent_id: Any) -> Intent | None:
        skill = self.skill(skill_id)
        if skill is None:
            return None
        wanted = _as_id(intent_id)
        return next((i for i in skill.intents if i.id == wanted), None)

    @_synchronized
    def slot(self, skill_id: Any, intent_id: Any, slot_id: Any) -> Slot | None:
        intent = self.intent(skill_id, intent_id)
        if intent is None:
            return None
        return intent.slots.get(_as_id(slot_id))

    @_synchronized
    def sample(self, skill_id: Any, intent_id: Any, sample_id: Any) -> Sample | None:
        intent = self.intent(skill_id, intent_id)
        if intent is None:
            return None
        wanted = _as_id(sample_id)
        return next((s for s in intent.training if s.id == wanted), None)

    @_synchronized
    def snapshot(self) -> dict[str, Any]:
        """Deep plain-data copy of the whole store, for diffing."""
        return {
            "agents": {k: v.model_dump(by_alias=True) for k, v in self._agents.items()},
            "skills": {k: v.model_dump(by_alias=True) for k, v in self._skills.items()},
            "entities": {k: v.model_dump(by_alias=True) for k, v in self._entities.items()},
        }

    # ── Agents ──────────────────────────────────────

    @_synchronized
    def add_agent(self, name: str, description: str = "") -> Agent:
        agent = Agent(id=next_id(self._agents), name=_text(name), description=_text(description))
        self._agents[agent.id] = agent
        self.changes.record("add_agent", "agent", agent=agent.id)
        return agent

    @_synchronized
    def set_agent(self, agent_id: Any, name: str, description: str = "") -> Agent | None:
        agent = self.agent(agent_id)
        if agent is None:
            logger.debug(f"set_agent: agent {agent_id!r} not found, ignored")
            return None
        if _assign(agent, name=_text(name), description=_text(description)):
            self.changes.record("set_agent", "agent", agent=agent.id)
        return agent

    @_synchronized
    def set_agent_skills(self, agent_id: Any, skills: Iterable[int]) -> Agent | None:
        """Replace the agent's skill references wholesale; ids are not checked."""
        agent = self.agent(agent_id)
        if agent is None:
            logger.debug(f"set_agent_skills: agent {agent_id!r} not found, ignored")
            return None
        if isinstance(skills, (str, bytes)) or not isinstance(skills, Iterable):
            logger.debug(f"set_agent_skills: {skills!r} is not a list of skill ids, ignored")
            return None
        if _assign(agent, skills=list(skills)):
            self.changes.record("set_agent_skills", "agent", agent=agent.id)
        return agent

    @_synchronized
    def delete_agent(self, agent_id: Any) -> None:
        agent = self._agents.pop(_as_id(agent_id), None)
        if agent is None:
            logger.debug(f"delete_agent: agent {agent_id!r} not found, ignored")
            return
        self.changes.record("delete_agent", "agent", agent=agent.id)

    # ── Entities ────────────────────────────────────

    @_synchronized
    def add_entity(self, name: str, entity_type: str = "", content: Any = None) -> Entity:
        entity = Entity(
            id=next_id(self._entities), name=_text(name), type=_text(entity_type), content=content,
        )
        self._entities[entity.id] = entity
        self.changes.record("add_entity", "entity", entity=entity.id)
        return entity

    @_synchronized
    def set_entity(
        self, entity_id: Any, name: str, entity_type: str = "", content: Any = None,
    ) -> Entity | None:
        entity = self.entity(entity_id)
        if entity is None:
            logger.debug(f"set_entity: entity {entity_id!r} not found, ignored")
            return None
        if _assign(entity, name=_text(name), type=_text(entity_type), content=content):
            self.changes.record("set_entity", "entity", entity=entity.id)
        return entity

    @_synchronized
    def delete_entity(self, entity_id: Any) -> None:
        # Slots bound to this entity keep the dangling id
        entity = self._entities.pop(_as_id(entity_id), None)
        if entity is None:
            logger.debug(f"delete_entity: entity {entity_id!r} not found, ignored")
            return
        self.changes.record("delete_entity", "entity", entity=entity.id)

    # ── Skills ──────────────────────────────────────

    @_synchronized
    def add_skill(self, name: str, description: str = "") -> Skill:
        skill = Skill(id=next_id(self._skills), name=_text(name), description=_text(description))
        self._skills[skill.id] = skill
        self.changes.record("add_skill", "skill", skill=skill.id)
        return skill

    @_synchronized
    def set_skill(self, skill_id: Any, name: str, description: str = "") -> Skill | None:
        skill = self.skill(skill_id)
        if skill is None:
            logger.debug(f"set_skill: skill {skill_id!r} not found, ignored")
            return None
        if _assign(skill, name=_text(name), description=_text(description)):
            self.changes.record("set_skill", "skill", skill=skill.id)
        return skill

    @_synchronized
    def delete_skill(self, skill_id: Any) -> None:
        """Drop the skill and every intent it embeds.

        Agents still listing the id are left alone; the compiler skips them.
        """
        skill = self._skills.pop(_as_id(skill_id), None)
        if skill is None:
            logger.debug(f"delete_skill: skill {skill_id!r} not found, ignored")
            return
        self.changes.record("delete_skill", "skill", skill=skill.id)

    # ── Intents ─────────────────────────────────────

    @_synchronized
    def add_intent(self, name: str, description: str, skill_id: Any) -> Intent | None:
        skill = self.skill(skill_id)
        if skill is None:
            logger.debug(f"add_intent: skill {skill_id!r} not found, ignored")
            return None
        intent = Intent(
            id=next_id(i.id for i in skill.intents),
            skill_id=skill.id,
            name=_text(name),
            description=_text(description),
        )
        skill.intents.append(intent)
        self.changes.record("add_intent", "intent", skill=skill.id, intent=intent.id)
        return intent

    @_synchronized
    def set_intent(
        self, intent_id: Any, skill_id: Any, name: str, description: str = "",
    ) -> Intent | None:
        intent = self.intent(skill_id, intent_id)
        if intent is None:
            logger.debug(f"set_intent: intent {skill_id!r}/{intent_id!r} not found, ignored")
            return None
        if _assign(intent, name=_text(name), description=_text(description)):
            self.changes.record("set_intent", "intent", skill=intent.skill_id, intent=intent.id)
        return intent

    @_synchronized
    def delete_intent(self, intent_id: Any, skill_id: Any) -> None:
        skill = self.skill(skill_id)
        intent = self.intent(skill_id, intent_id)
        if intent is None:
            logger.debug(f"delete_intent: intent {skill_id!r}/{intent_id!r} not found, ignored")
            return
        skill.intents.remove(intent)
        self.changes.record("delete_intent", "intent", skill=skill.id, intent=intent.id)

    # ── Slots ───────────────────────────────────────

    def _pick_color(self, intent: Intent) -> str:
        taken = {s.color for s in intent.slots.values()}
        available = [c for c in self.palette if c not in taken]
        # Palette exhausted: any colour may repeat
        return self._rng.choice(available or self.palette)

    @_synchronized
    def add_slot(self, skill_id: Any, intent_id: Any) -> Slot | None:
        intent = self.intent(skill_id, intent_id)
        if intent is None:
            logger.debug(f"add_slot: intent {skill_id!r}/{intent_id!r} not found, ignored")
            return None
        slot = Slot(id=next_id(intent.slots), color=self._pick_color(intent))
        intent.slots[slot.id] = slot
        self.changes.record(
            "add_slot", "slot", skill=intent.skill_id, intent=intent.id, slot=slot.id,
        )
        return slot

    @_synchronized
    def set_slot(
        self,
        slot_id: Any,
        skill_id: Any,
        intent_id: Any,
        name: str | None = None,
        entity: Any = None,
    ) -> Slot | None:
        """Partial update: a falsy ``name`` or ``entity`` keeps the current value."""
        slot = self.slot(skill_id, intent_id, slot_id)
        if slot is None:
            logger.debug(
                f"set_slot: slot {skill_id!r}/{intent_id!r}/{slot_id!r} not found, ignored"
            )
            return None
        fields = {}
        if name:
            fields["name"] = _text(name)
        entity_id = _as_id(entity) if entity else None
        if entity_id:
            fields["entity"] = entity_id
        if _assign(slot, **fields):
            self.changes.record(
                "set_slot", "slot", skill=_as_id(skill_id), intent=_as_id(intent_id), slot=slot.id,
            )
        return slot

    @_synchronized
    def delete_slot(self, slot_id: Any, skill_id: Any, intent_id: Any) -> None:
        # Span annotations pointing at this slot keep the dangling id
        intent = self.intent(skill_id, intent_id)
        slot = intent.slots.pop(_as_id(slot_id), None) if intent is not None else None
        if slot is None:
            logger.debug(
                f"delete_slot: slot {skill_id!r}/{intent_id!r}/{slot_id!r} not found, ignored"
            )
            return
        self.changes.record(
            "delete_slot", "slot", skill=intent.skill_id, intent=intent.id, slot=slot.id,
        )

    # ── Samples ─────────────────────────────────────

    @_synchronized
    def add_sample(self, skill_id: Any, intent_id: Any) -> Sample | None:
        intent = self.intent(skill_id, intent_id)
        if intent is None:
            logger.debug(f"add_sample: intent {skill_id!r}/{intent_id!r} not found, ignored")
            return None
        sample = Sample(id=next_id(s.id for s in intent.training))
        intent.training.append(sample)
        self.changes.record(
            "add_sample", "sample", skill=intent.skill_id, intent=intent.id, sample=sample.id,
        )
        return sample

    @_synchronized
    def set_sample(
        self,
        sample_id: Any,
        skill_id: Any,
        intent_id: Any,
        text: str | None = None,
        slot: SpanAnnotation | Mapping[str, Any] | None = None,
    ) -> Sample | None:
        """Update the text and/or upsert one span annotation.

        A falsy ``text`` keeps the current text. ``slot`` is keyed by
        ``(start, end)``: a falsy ``slot.slot`` removes the annotation at that
        range, an existing one is overwritten in place (last write wins),
        otherwise the span is appended.
        """
        sample = self.sample(skill_id, intent_id, sample_id)
        if sample is None:
            logger.debug(
                f"set_sample: sample {skill_id!r}/{intent_id!r}/{sample_id!r} not found, ignored"
            )
            return None
        changed = _assign(sample, text=_text(text)) if text else False
        if slot is not None:
            span = self._coerce_span(slot)
            if span is not None:
                changed = self._upsert_span(sample, span) or changed
        if changed:
            self.changes.record(
                "set_sample", "sample", skill=_as_id(skill_id), intent=_as_id(intent_id), sample=sample.id,
            )
        return sample

    @staticmethod
    def _coerce_span(slot: SpanAnnotation | Mapping[str, Any]) -> SpanAnnotation | None:
        if isinstance(slot, SpanAnnotation):
            return slot.model_copy()
        try:
            return SpanAnnotation.model_validate(dict(slot))
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"set_sample: unusable span annotation {slot!r} ignored: {e}")
            return None

    @staticmethod
    def _upsert_span(sample: Sample, span: SpanAnnotation) -> bool:
        existing = sample.find_span(span.start, span.end)
        if not span.slot:
            if existing is None:
                return False
            sample.slots.remove(existing)
            return True
        if existing is not None:
            return _assign(existing, value=span.value, slot=span.slot)
        sample.slots.append(span)
        return True

    @_synchronized
    def delete_sample(self, sample_id: Any, skill_id: Any, intent_id: Any) -> None:
        intent = self.intent(skill_id, intent_id)
        sample = self.sample(skill_id, intent_id, sample_id)
        if sample is None:
            logger.debug(
                f"delete_sample: sample {skill_id!r}/{intent_id!r}/{sample_id!r} not found, ignored"
            )
            return
        intent.training.remove(sample)
        self.changes.record(
            "delete_sample", "sample", skill=intent.skill_id, intent=intent.id, sample=sample.id,
        )
