"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class RiskLevel(str, Enum):
    """Combined heat, air-quality and UV hazard, ordered Low < Medium < High."""

    low = "Low"
    medium = "Medium"
    high = "High"

    @property
    def rank(self) -> int:
        return _RISK_RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_RISK_RANKS = {RiskLevel.low: 0, RiskLevel.medium: 1, RiskLevel.high: 2}


@dataclass(frozen=True, slots=True)
class Reading:
    """A normalized observation with its derived heat index and risk level."""

    timestamp: datetime
    temperature: float
    humidity: int
    pm25: int
    uv_index: int
    wind_speed: float
    heat_index: float
    risk_level: RiskLevel


@dataclass(frozen=True, slots=True)
class TransitionEvent:
    """Risk level change between the two most recent readings."""

    from_level: RiskLevel
    to_level: RiskLevel
    at_reading: Reading


@dataclass(frozen=True, slots=True)
class Location:
    name: str
    country: str
    lat: float
    lon: float

    @property
    def key(self) -> tuple[float, float]:
        """Identity used to decide whether a selection is a new location."""
        return (round(self.lat, 4), round(self.lon, 4))

    @property
    def label(self) -> str:
        return f"{self.name}, {self.country}" if self.country else self.name
