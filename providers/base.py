"""Contracts for the upstream data sources."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from models.records import Location


class ProviderError(Exception):
    """Network or upstream failure; ``status`` is the HTTP status when one was received."""

    def __init__(self, status: Optional[int], message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class ReadingProvider(Protocol):
    async def fetch_by_coordinates(self, lat: float, lon: float) -> Dict[str, Any]:
        ...

    async def aclose(self) -> None:
        ...


class GeocodingProvider(Protocol):
    async def search(self, query: str) -> List[Location]:
        ...

    async def aclose(self) -> None:
        ...
