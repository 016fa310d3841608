from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

import httpx

from models.records import Location
from providers.base import ProviderError
from services.normalizer import MalformedPayloadError

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
SUGGESTION_LIMIT = 5


class OpenWeatherGeocoder:
    """City name lookup against the OpenWeatherMap direct geocoding API."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def search(self, query: str) -> List[Location]:
        candidate = query.strip()
        if len(candidate) < MIN_QUERY_LENGTH:
            return []
        if not self._api_key:
            raise ProviderError(None, "Geocoding API key is not configured.")

        try:
            response = await self._client.get(
                "/direct",
                params={"q": candidate, "limit": SUGGESTION_LIMIT, "appid": self._api_key},
            )
        except httpx.RequestError as exc:
            logger.warning("Geocoding request failed", extra={"reason": str(exc)})
            raise ProviderError(None, f"Failed to reach geocoding provider: {exc}") from exc

        if response.is_error:
            raise ProviderError(
                response.status_code, f"Geocoding failed ({response.status_code})"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedPayloadError("Geocoding provider returned an unparseable body.") from exc
        if not isinstance(payload, list):
            raise MalformedPayloadError("Geocoding response is not a list.")

        return [self._to_location(item) for item in payload]

    @staticmethod
    def _to_location(item: Any) -> Location:
        if not isinstance(item, Mapping):
            raise MalformedPayloadError("Geocoding entry is not an object.")
        try:
            return Location(
                name=str(item["name"]),
                country=str(item.get("country") or ""),
                lat=float(item["lat"]),
                lon=float(item["lon"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedPayloadError(f"Geocoding entry is incomplete: {exc}") from exc
