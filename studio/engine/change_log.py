"""Change log — records every store mutation as an explicit event."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

Subscriber = Callable[["StoreEvent"], None]


@dataclass(frozen=True)
class StoreEvent:
    seq: int
    action: str  # store method name, e.g. "add_slot"
    kind: str  # agent | skill | entity | intent | slot | sample
    ids: dict[str, int]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ChangeLog:
    """Keeps the most recent events and fans them out to subscribers."""

    def __init__(self, limit: int = 1000, enabled: bool = True):
        self.enabled = enabled
        self._events: deque[StoreEvent] = deque(maxlen=limit)
        self._subscribers: list[Subscriber] = []
        self._seq = 0

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def record(self, action: str, kind: str, **ids: Any) -> StoreEvent | None:
        if not self.enabled:
            return None
        self._seq += 1
        event = StoreEvent(seq=self._seq, action=action, kind=kind, ids=dict(ids))
        self._events.append(event)
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Change subscriber failed on {action}: {e}")
        return event

    def events(self, since: int = 0) -> list[StoreEvent]:
        """Events with ``seq`` greater than ``since``, oldest first."""
        return [e for e in self._events if e.seq > since]

    @property
    def last_seq(self) -> int:
        return self._seq
