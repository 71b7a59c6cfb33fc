"""
Structured records of invariant repairs.

Operators never fail loudly when a child would break an invariant; they fall
back to a safe value instead. Every such fallback is recorded here so a run
can report how often it happened and callers can watch it live.
"""

from __future__ import annotations

from collections import Counter, deque
from enum import Enum
import threading
from typing import Callable, Optional

from loguru import logger
from pydantic import BaseModel, Field


class RepairKind(str, Enum):
    CROSSOVER_REVERTED = "crossover_reverted"
    MUTATION_REVERTED = "mutation_reverted"
    CHILD_ANCHOR_RESET = "child_anchor_reset"
    ANCHOR_DRIFT_FILTERED = "anchor_drift_filtered"
    POPULATION_REFILLED = "population_refilled"
    POPULATION_RESEEDED = "population_reseeded"
    BEST_UPDATE_SKIPPED = "best_update_skipped"


class RepairEvent(BaseModel):
    kind: RepairKind
    generation: Optional[int] = None
    slot: Optional[int] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    count: int = Field(default=1, ge=0)
    message: str = ""


RepairCallback = Callable[[RepairEvent], None]

DEFAULT_MAX_EVENTS = 1000

# Uniqueness fallbacks are routine during reproduction; anchor repairs are not.
_ROUTINE_KINDS = {RepairKind.CROSSOVER_REVERTED, RepairKind.MUTATION_REVERTED}


class RepairLog:
    """Thread-safe collector of ``RepairEvent``s with live subscribers.

    Only the latest ``max_events`` events are kept; ``counts`` covers every
    event ever recorded.
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS) -> None:
        self._events: deque[RepairEvent] = deque(maxlen=max_events)
        self._totals: Counter[str] = Counter()
        self._recorded = 0
        self._subscribers: list[RepairCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: RepairCallback) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def record(self, event: RepairEvent) -> RepairEvent:
        with self._lock:
            self._events.append(event)
            self._totals[event.kind.value] += event.count
            self._recorded += 1
            subscribers = list(self._subscribers)
        level = "DEBUG" if event.kind in _ROUTINE_KINDS else "WARNING"
        logger.bind(repair=event.kind.value).log(
            level,
            "[RepairLog] {} (generation={}, slot={}, expected={}, actual={}, count={}) {}",
            event.kind.value,
            event.generation,
            event.slot,
            event.expected,
            event.actual,
            event.count,
            event.message,
        )
        for callback in subscribers:
            callback(event)
        return event

    def emit(self, kind: RepairKind, **fields) -> RepairEvent:
        return self.record(RepairEvent(kind=kind, **fields))

    @property
    def events(self) -> list[RepairEvent]:
        with self._lock:
            return list(self._events)

    def counts(self) -> dict[str, int]:
        """Total ``count`` per repair kind."""
        with self._lock:
            return dict(self._totals)

    @property
    def recorded(self) -> int:
        """Events recorded so far, including those no longer retained."""
        with self._lock:
            return self._recorded

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
