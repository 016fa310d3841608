"""Fetch-cycle orchestration for the tracked location."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, List, Optional

from datastore.location_store import LocationStore, build_default_store
from models.records import Location, Reading, TransitionEvent
from notifications.sink import AlertDispatcher, InboxNotificationSink, NotificationPermission
from providers.base import GeocodingProvider, ProviderError, ReadingProvider
from providers.geocoding import OpenWeatherGeocoder
from providers.waqi import WaqiReadingProvider
from services.export import render_csv
from services.history import DEFAULT_CAPACITY
from services.normalizer import MalformedPayloadError, ReadingNormalizer
from services.pipeline import MonitorState, ingest
from services.watcher import RiskTransitionWatcher
from settings import get_settings

logger = logging.getLogger(__name__)


class LocationNotSelectedError(RuntimeError):
    """A refresh was requested before any location was tracked."""


class LocationNotFoundError(LookupError):
    """No geocoding suggestion matched the requested city."""


@dataclass(frozen=True)
class RefreshOutcome:
    location: Location
    reading: Optional[Reading] = None
    event: Optional[TransitionEvent] = None
    stale: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MonitorService:
    """Owns the monitor state and runs fetch, normalize, append and check in order.

    Every fetch is tagged with a request sequence number. A result arriving
    after a newer request was issued is discarded instead of appended, so a
    slow response for a previous location never lands in the current window.
    """

    def __init__(
        self,
        provider: ReadingProvider,
        geocoder: GeocodingProvider,
        store: LocationStore,
        dispatcher: AlertDispatcher,
        capacity: int = DEFAULT_CAPACITY,
        alerts_enabled: bool = False,
        permission: NotificationPermission = NotificationPermission.default,
        reset_history_on_location_change: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.provider = provider
        self.geocoder = geocoder
        self.store = store
        self.dispatcher = dispatcher
        self.capacity = capacity
        self.alerts_enabled = alerts_enabled
        self.permission = permission
        self.reset_history_on_location_change = reset_history_on_location_change
        self.state = MonitorState.for_location(None, capacity)
        self._clock = clock
        self._normalizer = ReadingNormalizer()
        self._watcher = RiskTransitionWatcher()
        self._request_seq = 0

    @property
    def location(self) -> Optional[Location]:
        return self.state.location

    def restore(self, default: Location) -> Location:
        """Track the last selected location, or ``default`` when none was saved."""
        location = self.store.load() or default
        # Any in-flight fetch belongs to the previous selection.
        self._request_seq += 1
        self.state = self._state_for(location)
        self.state.location = location
        logger.info("Restored tracked location", extra={"location": location.label})
        return location

    async def search(self, query: str) -> List[Location]:
        return await self.geocoder.search(query)

    async def select_city(self, query: str) -> RefreshOutcome:
        wanted = query.strip().lower()
        suggestions = await self.geocoder.search(query)
        match = next((item for item in suggestions if item.name.lower() == wanted), None)
        if match is None:
            raise LocationNotFoundError("City not found. Please try another.")
        return await self.select_location(match)

    async def select_location(self, location: Location) -> RefreshOutcome:
        """Fetch ``location`` and start tracking it once a reading was recorded.

        A failed fetch leaves the tracked location, its window and the saved
        last location untouched.
        """
        return await self._run_cycle(location, selecting=True)

    async def refresh(self) -> RefreshOutcome:
        location = self.state.location
        if location is None:
            raise LocationNotSelectedError("No location selected.")
        return await self._run_cycle(location, selecting=False)

    async def _run_cycle(self, location: Location, selecting: bool) -> RefreshOutcome:
        seq = self._next_request()
        context = {"location": location.label, "request_seq": seq}
        try:
            payload = await self.provider.fetch_by_coordinates(location.lat, location.lon)
        except (ProviderError, MalformedPayloadError) as exc:
            if self._is_superseded(seq):
                logger.info("Ignoring failure of superseded fetch", extra=context)
                return RefreshOutcome(location=location, stale=True)
            logger.warning("Fetch failed", extra={**context, "reason": str(exc)})
            raise

        if self._is_superseded(seq):
            logger.info("Discarding superseded reading", extra=context)
            return RefreshOutcome(location=location, stale=True)

        state = self._state_for(location) if selecting else self.state
        try:
            result = ingest(state, payload, self._clock(), self._normalizer, self._watcher)
        except MalformedPayloadError as exc:
            logger.warning("Payload rejected", extra={**context, "reason": str(exc)})
            raise

        if selecting:
            result.state.location = location
            self.store.save(location)
        self.state = result.state
        reading = result.reading
        logger.info(
            "Reading recorded",
            extra={
                **context,
                "risk_level": reading.risk_level,
                "heat_index": reading.heat_index,
                "history_size": len(self.state.history),
            },
        )

        if result.event is not None:
            logger.info(
                "Risk level changed",
                extra={
                    **context,
                    "from_level": result.event.from_level,
                    "to_level": result.event.to_level,
                },
            )
            self.permission = self.dispatcher.dispatch(
                result.event, self.alerts_enabled, self.permission
            )

        return RefreshOutcome(location=location, reading=reading, event=result.event)

    def set_alerts(
        self, enabled: bool, permission: Optional[NotificationPermission] = None
    ) -> None:
        self.alerts_enabled = enabled
        if permission is not None:
            self.permission = permission

    def export_csv(self) -> str:
        return render_csv(self.state.history.all())

    async def aclose(self) -> None:
        await self.provider.aclose()
        await self.geocoder.aclose()

    def _state_for(self, location: Location) -> MonitorState:
        """State a reading for ``location`` is appended to; the current one is not modified."""
        current = self.state.location
        changed = current is None or current.key != location.key
        if changed and self.reset_history_on_location_change:
            return MonitorState.for_location(location, self.capacity)
        return self.state

    def _next_request(self) -> int:
        self._request_seq += 1
        return self._request_seq

    def _is_superseded(self, seq: int) -> bool:
        return seq != self._request_seq


async def run_periodic_refresh(monitor: MonitorService, interval: float) -> None:
    """Refresh every ``interval`` seconds until cancelled; failures are logged and retried next tick."""
    while True:
        await asyncio.sleep(interval)
        try:
            await monitor.refresh()
        except (ProviderError, MalformedPayloadError, LocationNotSelectedError) as exc:
            logger.warning("Scheduled refresh failed", extra={"reason": str(exc)})


@lru_cache
def build_default_monitor() -> MonitorService:
    """Factory that wires the monitor with the configured providers."""
    settings = get_settings()
    provider = WaqiReadingProvider(
        base_url=settings.waqi_base_url,
        token=settings.waqi_token,
        timeout=settings.provider_timeout,
    )
    geocoder = OpenWeatherGeocoder(
        base_url=settings.geocoding_base_url,
        api_key=settings.geocoding_api_key,
        timeout=settings.provider_timeout,
    )
    sink = InboxNotificationSink(size=settings.notification_inbox_size)
    return MonitorService(
        provider=provider,
        geocoder=geocoder,
        store=build_default_store(),
        dispatcher=AlertDispatcher(sink),
        capacity=settings.history_capacity,
        alerts_enabled=settings.alerts_enabled,
        reset_history_on_location_change=settings.reset_history_on_location_change,
    )


def default_location() -> Location:
    settings = get_settings()
    return Location(
        name=settings.default_city,
        country=settings.default_country,
        lat=settings.default_lat,
        lon=settings.default_lon,
    )
