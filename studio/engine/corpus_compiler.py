"""Corpus compiler — flattens one agent's tree into labeled training examples.

Read-only over the store. Holds the store lock for the whole walk so the
result is a consistent snapshot.

Samples with several span annotations produce a single example that carries
all of them as parallel entity spans; no per-entity duplication is done.
"""

from __future__ import annotations

import bisect
import logging
from typing import Any

from studio.engine.store import Store
from studio.models import Corpus, EntityAnnotation, Example, Intent, Sample, SpanAnnotation

logger = logging.getLogger(__name__)


def _newline_offsets(text: str) -> list[int]:
    return [i for i, ch in enumerate(text) if ch == "\n"]


def _shift(offset: int, newlines: list[int]) -> int:
    """Map an offset in the raw text to the same position once newlines are gone."""
    return offset - bisect.bisect_left(newlines, offset)


def _resolve_entity_name(store: Store, intent: Intent, span: SpanAnnotation) -> str | None:
    slot = intent.slots.get(span.slot) if span.slot is not None else None
    if slot is None or not slot.entity:
        return None
    entity = store.entity(slot.entity)
    return entity.name if entity is not None else None


def compile_sample(store: Store, intent: Intent, sample: Sample) -> Example:
    newlines = _newline_offsets(sample.text)
    entities = [
        EntityAnnotation(
            start=_shift(span.start, newlines),
            end=_shift(span.end, newlines),
            value=span.value,
            entity_name=_resolve_entity_name(store, intent, span),
        )
        for span in sorted(sample.slots, key=lambda s: (s.start, s.end))
    ]
    return Example(text=sample.text.replace("\n", ""), intent_name=intent.name, entities=entities)


def compile_training_corpus(store: Store, agent_id: Any) -> Corpus:
    """Walk agent → skills → intents → samples and emit one example per sample.

    Unknown agents give an empty corpus; skill ids that no longer resolve
    contribute nothing.
    """
    corpus = Corpus()
    with store.lock:
        agent = store.agent(agent_id)
        if agent is None:
            logger.debug(f"compile_training_corpus: agent {agent_id!r} not found")
            return corpus

        for skill_id in agent.skills:
            skill = store.skill(skill_id)
            if skill is None:
                logger.warning(f"Agent {agent.id} references missing skill {skill_id!r}; skipped")
                continue
            for intent in skill.intents:
                for sample in intent.training:
                    corpus.examples.append(compile_sample(store, intent, sample))

    logger.info(f"Compiled {len(corpus.examples)} examples for agent {agent.id}")
    return corpus


def to_rasa_nlu(corpus: Corpus) -> dict[str, Any]:
    """Render a corpus as Rasa NLU JSON training data.

    Rasa needs an entity label on every span, so spans whose entity no longer
    resolves are left out of this rendering.
    """
    common_examples = []
    for example in corpus.examples:
        common_examples.append({
            "text": example.text,
            "intent": example.intent_name,
            "entities": [
                {"start": e.start, "end": e.end, "value": e.value, "entity": e.entity_name}
                for e in example.entities
                if e.entity_name
            ],
        })
    return {
        "rasa_nlu_data": {
            "common_examples": common_examples,
            "regex_features": [],
            "entity_synonyms": [],
        },
    }
