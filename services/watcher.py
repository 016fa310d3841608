"""Detects risk level changes between consecutive readings."""

from __future__ import annotations

from typing import Optional

from models.records import TransitionEvent
from services.history import HistoryWindow


class RiskTransitionWatcher:
    """Pure detector; dispatching notifications is left to the caller."""

    def check(self, history: HistoryWindow) -> Optional[TransitionEvent]:
        entries = history.all()
        if len(entries) < 2:
            return None

        previous, current = entries[-2], entries[-1]
        if previous.risk_level == current.risk_level:
            return None
        return TransitionEvent(
            from_level=previous.risk_level,
            to_level=current.risk_level,
            at_reading=current,
        )
