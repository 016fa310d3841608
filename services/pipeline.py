"""State container and the synchronous ingest step of a fetch cycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from models.records import Location, Reading, TransitionEvent
from services.history import DEFAULT_CAPACITY, HistoryWindow
from services.normalizer import ReadingNormalizer
from services.watcher import RiskTransitionWatcher


@dataclass
class MonitorState:
    """Everything a fetch cycle reads and extends for the tracked location."""

    location: Optional[Location] = None
    history: HistoryWindow = field(default_factory=HistoryWindow)

    @classmethod
    def for_location(
        cls, location: Optional[Location], capacity: int = DEFAULT_CAPACITY
    ) -> "MonitorState":
        return cls(location=location, history=HistoryWindow(capacity))

    @property
    def current(self) -> Optional[Reading]:
        return self.history.latest()


@dataclass(frozen=True)
class IngestResult:
    state: MonitorState
    reading: Reading
    event: Optional[TransitionEvent]


def ingest(
    state: MonitorState,
    payload: Any,
    now: datetime,
    normalizer: ReadingNormalizer,
    watcher: RiskTransitionWatcher,
) -> IngestResult:
    """Normalize ``payload``, append it to the window and check for a transition.

    Normalization errors propagate before the window is touched.
    """
    reading = normalizer.normalize(payload, now)
    state.history.append(reading)
    event = watcher.check(state.history)
    return IngestResult(state=state, reading=reading, event=event)
