from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_WAQI_BASE_URL_ENV = "WAQI_BASE_URL"
_WAQI_TOKEN_ENV = "WAQI_API_TOKEN"
_GEOCODING_BASE_URL_ENV = "GEOCODING_BASE_URL"
_GEOCODING_KEY_ENV = "GEOCODING_API_KEY"
_PROVIDER_TIMEOUT_ENV = "PROVIDER_TIMEOUT_SECONDS"
_HISTORY_CAPACITY_ENV = "HISTORY_CAPACITY"
_ALERTS_ENABLED_ENV = "ALERTS_ENABLED"
_RESET_ON_CHANGE_ENV = "RESET_HISTORY_ON_LOCATION_CHANGE"
_REFRESH_INTERVAL_ENV = "REFRESH_INTERVAL_SECONDS"
_LOCATION_STORE_ENV = "LOCATION_STORE_PATH"
_INBOX_SIZE_ENV = "NOTIFICATION_INBOX_SIZE"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    waqi_base_url: str
    waqi_token: str
    geocoding_base_url: str
    geocoding_api_key: Optional[str]
    provider_timeout: float
    history_capacity: int
    alerts_enabled: bool
    reset_history_on_location_change: bool
    refresh_interval: float
    location_store_path: Optional[str]
    notification_inbox_size: int
    log_level: str
    default_city: str = "Jalandhar"
    default_country: str = "India"
    default_lat: float = 31.326
    default_lon: float = 75.5762


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_non_negative_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    timeout = _read_non_negative_float(_PROVIDER_TIMEOUT_ENV, 10.0)
    return Settings(
        waqi_base_url=_read_str_env(_WAQI_BASE_URL_ENV, "https://api.waqi.info").rstrip("/"),
        waqi_token=_read_str_env(_WAQI_TOKEN_ENV, "demo"),
        geocoding_base_url=_read_str_env(
            _GEOCODING_BASE_URL_ENV, "https://api.openweathermap.org/geo/1.0"
        ).rstrip("/"),
        geocoding_api_key=_read_optional_env(_GEOCODING_KEY_ENV, None),
        provider_timeout=timeout or 10.0,
        history_capacity=_read_positive_int(_HISTORY_CAPACITY_ENV, 24),
        alerts_enabled=_read_bool(_ALERTS_ENABLED_ENV, False),
        reset_history_on_location_change=_read_bool(_RESET_ON_CHANGE_ENV, True),
        refresh_interval=_read_non_negative_float(_REFRESH_INTERVAL_ENV, 0.0),
        location_store_path=_read_optional_env(_LOCATION_STORE_ENV, "./tmp/last_location.json"),
        notification_inbox_size=_read_positive_int(_INBOX_SIZE_ENV, 50),
        log_level=_read_log_level("INFO"),
    )
