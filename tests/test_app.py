from typing import Any, Dict, Iterator, List

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.location_store import LocationStore
from models.records import Location
from notifications.sink import AlertDispatcher, InboxNotificationSink
from providers.base import ProviderError
from services.monitor import MonitorService

LOW = {"status": "ok", "data": {"iaqi": {"t": {"v": 20}, "h": {"v": 50}, "pm25": {"v": 10}}, "uv": 1}}
HIGH = {"status": "ok", "data": {"iaqi": {"t": {"v": 38}, "h": {"v": 60}, "pm25": {"v": 80}}, "uv": 9}}
DELHI = Location(name="Delhi", country="IN", lat=28.6139, lon=77.209)


class QueueProvider:
    def __init__(self) -> None:
        self.responses: List[Any] = []
        self.closed = False

    async def fetch_by_coordinates(self, lat: float, lon: float) -> Dict[str, Any]:
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def aclose(self) -> None:
        self.closed = True


class StaticGeocoder:
    async def search(self, query: str) -> List[Location]:
        return [DELHI] if len(query.strip()) >= 2 else []

    async def aclose(self) -> None:
        pass


@pytest.fixture
def monitor() -> MonitorService:
    return MonitorService(
        provider=QueueProvider(),
        geocoder=StaticGeocoder(),
        store=LocationStore(),
        dispatcher=AlertDispatcher(InboxNotificationSink()),
    )


@pytest.fixture
def api_client(monitor: MonitorService, monkeypatch) -> Iterator[TestClient]:
    def build_test_monitor() -> MonitorService:
        return monitor

    build_test_monitor.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_monitor", build_test_monitor)
    monkeypatch.setattr("app.api.build_default_monitor", build_test_monitor)

    app = create_app()
    with TestClient(app) as client:
        yield client


def test_health(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
    assert api_client.get("/").status_code == 200


def test_startup_restores_default_location(api_client: TestClient) -> None:
    response = api_client.get("/location")

    assert response.status_code == 200
    assert response.json()["name"] == "Jalandhar"


def test_shutdown_closes_providers(monitor: MonitorService, monkeypatch) -> None:
    def build_test_monitor() -> MonitorService:
        return monitor

    build_test_monitor.cache_clear = lambda: None  # type: ignore[attr-defined]
    monkeypatch.setattr("app.main.build_default_monitor", build_test_monitor)

    with TestClient(create_app()):
        assert monitor.provider.closed is False

    assert monitor.provider.closed is True


def test_current_reading_missing_returns_not_found(api_client: TestClient) -> None:
    response = api_client.get("/readings/current")

    assert response.status_code == 404
    assert response.json()["detail"] == "No readings recorded yet."


def test_refresh_records_reading(api_client: TestClient, monitor: MonitorService) -> None:
    monitor.provider.responses = [HIGH]

    response = api_client.post("/refresh")

    assert response.status_code == 200
    body = response.json()
    assert body["stale"] is False
    assert body["transition"] is None
    assert body["reading"]["heat_index"] == 137.2
    assert body["reading"]["risk_level"] == "High"
    assert api_client.get("/readings/current").json()["pm25"] == 80


def test_select_location_resets_history(api_client: TestClient, monitor: MonitorService) -> None:
    monitor.provider.responses = [LOW, HIGH]
    api_client.post("/refresh")

    response = api_client.put(
        "/location",
        json={"name": "Delhi", "country": "IN", "lat": 28.6139, "lon": 77.209},
    )

    assert response.status_code == 200
    history = api_client.get("/readings").json()
    assert history["capacity"] == 24
    assert history["location"]["name"] == "Delhi"
    assert [item["risk_level"] for item in history["readings"]] == ["High"]


def test_select_location_validates_coordinates(api_client: TestClient) -> None:
    response = api_client.put("/location", json={"name": "Nowhere", "lat": 91, "lon": 0})

    assert response.status_code == 422


def test_select_by_name(api_client: TestClient, monitor: MonitorService) -> None:
    monitor.provider.responses = [LOW]

    response = api_client.put("/location/by-name", json={"query": "delhi"})

    assert response.status_code == 200
    assert response.json()["location"]["name"] == "Delhi"


def test_select_by_name_not_found(api_client: TestClient) -> None:
    response = api_client.put("/location/by-name", json={"query": "Atlantis"})

    assert response.status_code == 404
    assert response.json()["detail"] == "City not found. Please try another."


def test_search_locations(api_client: TestClient) -> None:
    response = api_client.get("/locations/search", params={"q": "Del"})

    assert response.status_code == 200
    assert response.json() == [{"name": "Delhi", "country": "IN", "lat": 28.6139, "lon": 77.209}]


def test_provider_failure_maps_to_bad_gateway(api_client: TestClient, monitor: MonitorService) -> None:
    monitor.provider.responses = [ProviderError(500, "Failed to fetch (500)")]

    response = api_client.post("/refresh")

    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to fetch (500)"
    assert api_client.get("/readings").json()["readings"] == []


def test_malformed_payload_maps_to_bad_gateway(api_client: TestClient, monitor: MonitorService) -> None:
    monitor.provider.responses = [{"status": "error", "data": "Invalid key"}]

    response = api_client.post("/refresh")

    assert response.status_code == 502
    assert response.json()["detail"] == "Invalid key"


def test_out_of_range_instrument_maps_to_bad_gateway(
    api_client: TestClient, monitor: MonitorService
) -> None:
    monitor.provider.responses = [{"status": "ok", "data": {"iaqi": {"pm25": {"v": 1e30}}}}]

    response = api_client.post("/refresh")

    assert response.status_code == 502
    assert api_client.get("/readings").json()["readings"] == []


def test_failed_selection_keeps_tracked_location(
    api_client: TestClient, monitor: MonitorService
) -> None:
    monitor.provider.responses = [{"status": "error", "data": "Unknown station"}]

    response = api_client.put(
        "/location",
        json={"name": "Delhi", "country": "IN", "lat": 28.6139, "lon": 77.209},
    )

    assert response.status_code == 502
    assert api_client.get("/readings").json()["location"]["name"] == "Jalandhar"


def test_export_csv(api_client: TestClient, monitor: MonitorService) -> None:
    monitor.provider.responses = [LOW]
    api_client.post("/refresh")

    response = api_client.get("/readings/export.csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "environmental-data-" in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert lines[0].startswith("Time,Temperature (°C)")
    assert len(lines) == 2


def test_alerts_flow(api_client: TestClient, monitor: MonitorService) -> None:
    assert api_client.get("/alerts").json() == {"enabled": False, "permission": "default"}

    response = api_client.put("/alerts", json={"enabled": True, "permission": "granted"})
    assert response.json() == {"enabled": True, "permission": "granted"}

    monitor.provider.responses = [LOW, HIGH]
    api_client.post("/refresh")
    refreshed = api_client.post("/refresh").json()

    assert refreshed["transition"] == {"from_level": "Low", "to_level": "High"}
    notifications = api_client.get("/notifications").json()
    assert len(notifications) == 1
    assert notifications[0]["title"] == "Risk Level Changed to High"
