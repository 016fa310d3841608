"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import Location, Reading, RiskLevel, TransitionEvent
from notifications.sink import Notification, NotificationPermission


class LocationModel(BaseModel):
    """A named place resolved to coordinates."""

    name: str = Field(..., min_length=1)
    country: str = ""
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    @classmethod
    def from_domain(cls, location: Location) -> "LocationModel":
        return cls(name=location.name, country=location.country, lat=location.lat, lon=location.lon)

    def to_domain(self) -> Location:
        return Location(name=self.name, country=self.country, lat=self.lat, lon=self.lon)


class CityQuery(BaseModel):
    query: str = Field(..., min_length=1, description="City name as typed by the user.")


class ReadingModel(BaseModel):
    """Normalized reading with derived heat index and risk level."""

    timestamp: datetime
    temperature: float = Field(..., description="Air temperature in °C.")
    humidity: int = Field(..., description="Relative humidity in %.")
    pm25: int = Field(..., ge=0, description="PM2.5 in µg/m³.")
    uv_index: int = Field(..., ge=0)
    wind_speed: float = Field(..., description="Wind speed in km/h.")
    heat_index: float = Field(..., description="Apparent temperature in °C.")
    risk_level: RiskLevel

    @classmethod
    def from_domain(cls, reading: Reading) -> "ReadingModel":
        return cls(
            timestamp=reading.timestamp,
            temperature=reading.temperature,
            humidity=reading.humidity,
            pm25=reading.pm25,
            uv_index=reading.uv_index,
            wind_speed=reading.wind_speed,
            heat_index=reading.heat_index,
            risk_level=reading.risk_level,
        )


class TransitionModel(BaseModel):
    from_level: RiskLevel
    to_level: RiskLevel

    @classmethod
    def from_domain(cls, event: TransitionEvent) -> "TransitionModel":
        return cls(from_level=event.from_level, to_level=event.to_level)


class RefreshResponse(BaseModel):
    """Outcome of one fetch cycle."""

    location: LocationModel
    reading: Optional[ReadingModel] = None
    transition: Optional[TransitionModel] = None
    stale: bool = Field(
        default=False,
        description="True when a newer request superseded this one and its result was discarded.",
    )


class HistoryResponse(BaseModel):
    location: Optional[LocationModel] = None
    capacity: int = Field(..., ge=1)
    readings: List[ReadingModel] = Field(default_factory=list)


class AlertSettings(BaseModel):
    enabled: bool
    permission: NotificationPermission = NotificationPermission.default


class NotificationModel(BaseModel):
    title: str
    body: str
    created_at: datetime

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationModel":
        return cls(
            title=notification.title,
            body=notification.body,
            created_at=notification.created_at,
        )
