from __future__ import annotations

from typing import Any, Dict, List, NoReturn, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the monitor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def search(self, query: str) -> List[Dict[str, Any]]:
        return self._request("GET", "/locations/search", params={"q": query}).json()

    def select_coordinates(
        self, lat: float, lon: float, name: str, country: str = ""
    ) -> Dict[str, Any]:
        body = {"name": name, "country": country, "lat": lat, "lon": lon}
        return self._request("PUT", "/location", json=body).json()

    def select_city(self, query: str) -> Dict[str, Any]:
        return self._request("PUT", "/location/by-name", json={"query": query}).json()

    def refresh(self) -> Dict[str, Any]:
        return self._request("POST", "/refresh").json()

    def current(self) -> Dict[str, Any]:
        return self._request("GET", "/readings/current").json()

    def history(self) -> Dict[str, Any]:
        return self._request("GET", "/readings").json()

    def export_csv(self) -> str:
        return self._request("GET", "/readings/export.csv").text

    def get_alerts(self) -> Dict[str, Any]:
        return self._request("GET", "/alerts").json()

    def update_alerts(self, enabled: bool, permission: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"enabled": enabled}
        if permission is not None:
            body["permission"] = permission
        else:
            body["permission"] = self.get_alerts().get("permission", "default")
        return self._request("PUT", "/alerts", json=body).json()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> NoReturn:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
