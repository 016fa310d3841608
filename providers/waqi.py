from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from providers.base import ProviderError
from services.normalizer import MalformedPayloadError

logger = logging.getLogger(__name__)


class WaqiReadingProvider:
    """Station readings from the World Air Quality Index geo feed."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._token = token
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_by_coordinates(self, lat: float, lon: float) -> Dict[str, Any]:
        try:
            response = await self._client.get(
                f"/feed/geo:{lat};{lon}/", params={"token": self._token}
            )
        except httpx.RequestError as exc:
            logger.warning("Reading request failed", extra={"reason": str(exc)})
            raise ProviderError(None, f"Failed to reach reading provider: {exc}") from exc

        if response.is_error:
            logger.warning(
                "Reading provider returned an error",
                extra={"status": response.status_code},
            )
            raise ProviderError(
                response.status_code, f"Failed to fetch ({response.status_code})"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedPayloadError("Reading provider returned an unparseable body.") from exc
