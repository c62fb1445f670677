from studio.models.agent import Agent
from studio.models.entity import Entity
from studio.models.skill import Skill, Intent, Slot, Sample, SpanAnnotation
from studio.models.corpus import Corpus, Example, EntityAnnotation

__all__ = [
    "Agent",
    "Entity",
    "Skill",
    "Intent",
    "Slot",
    "Sample",
    "SpanAnnotation",
    "Corpus",
    "Example",
    "EntityAnnotation",
]
