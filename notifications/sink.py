"""Alert delivery for risk level transitions."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, List, Protocol

from models.records import TransitionEvent

logger = logging.getLogger(__name__)


class NotificationPermission(str, Enum):
    granted = "granted"
    denied = "denied"
    default = "default"


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    created_at: datetime


class NotificationSink(Protocol):
    def notify(self, title: str, body: str) -> None:
        ...

    def request_permission(self) -> NotificationPermission:
        ...


class InboxNotificationSink:
    """Logs each notification and keeps the most recent ones for clients to poll."""

    def __init__(
        self,
        size: int = 50,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._inbox: Deque[Notification] = deque(maxlen=size)
        self._clock = clock

    def notify(self, title: str, body: str) -> None:
        logger.info("%s: %s", title, body)
        self._inbox.append(Notification(title=title, body=body, created_at=self._clock()))

    def request_permission(self) -> NotificationPermission:
        return NotificationPermission.granted

    def recent(self) -> List[Notification]:
        """Newest first."""
        return list(reversed(self._inbox))


def format_alert(event: TransitionEvent) -> tuple[str, str]:
    reading = event.at_reading
    title = f"Risk Level Changed to {event.to_level.value}"
    body = f"Temp: {reading.temperature}°C, PM2.5: {reading.pm25} μg/m³"
    return title, body


def should_notify(enabled: bool, permission: NotificationPermission) -> bool:
    return enabled and permission is NotificationPermission.granted


class AlertDispatcher:
    """Sends one notification per transition when alerts are enabled and permitted."""

    def __init__(self, sink: NotificationSink) -> None:
        self.sink = sink

    def dispatch(
        self,
        event: TransitionEvent,
        enabled: bool,
        permission: NotificationPermission,
    ) -> NotificationPermission:
        """Deliver ``event`` and return the permission state after any prompt."""
        if not enabled:
            return permission

        if permission is NotificationPermission.default:
            permission = self.sink.request_permission()

        if not should_notify(enabled, permission):
            logger.info(
                "Risk transition not delivered",
                extra={"reason": f"permission {permission.value}"},
            )
            return permission

        title, body = format_alert(event)
        self.sink.notify(title, body)
        return permission
