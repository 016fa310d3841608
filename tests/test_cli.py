from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
import typer
from typer.testing import CliRunner

from cli.app import app

READING = {
    "timestamp": "2024-06-01T12:00:00Z",
    "temperature": 38.0,
    "humidity": 60,
    "pm25": 80,
    "uv_index": 9,
    "wind_speed": 10.0,
    "heat_index": 137.2,
    "risk_level": "High",
}
DELHI = {"name": "Delhi", "country": "IN", "lat": 28.6139, "lon": 77.209}


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.calls: List[tuple] = []
        self.refresh_payload: Dict[str, Any] = {
            "location": DELHI,
            "reading": READING,
            "transition": {"from_level": "Low", "to_level": "High"},
            "stale": False,
        }
        self.alerts: Dict[str, Any] = {"enabled": False, "permission": "default"}
        self.closed = False

    def search(self, query: str) -> List[Dict[str, Any]]:
        self.calls.append(("search", query))
        return [DELHI]

    def select_coordinates(self, lat: float, lon: float, name: str, country: str = "") -> Dict[str, Any]:
        self.calls.append(("select_coordinates", lat, lon, name))
        return self.refresh_payload

    def select_city(self, query: str) -> Dict[str, Any]:
        self.calls.append(("select_city", query))
        return self.refresh_payload

    def refresh(self) -> Dict[str, Any]:
        self.calls.append(("refresh",))
        return self.refresh_payload

    def current(self) -> Dict[str, Any]:
        return READING

    def history(self) -> Dict[str, Any]:
        return {"location": DELHI, "capacity": 24, "readings": [READING, READING]}

    def export_csv(self) -> str:
        return "Time,Temperature (°C)\n2024-06-01 12:00,38.0\n"

    def get_alerts(self) -> Dict[str, Any]:
        return self.alerts

    def update_alerts(self, enabled: bool, permission: Optional[str] = None) -> Dict[str, Any]:
        self.calls.append(("update_alerts", enabled, permission))
        self.alerts = {"enabled": enabled, "permission": permission or self.alerts["permission"]}
        return self.alerts

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


def test_search(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["search", "Delhi"])

    assert result.exit_code == 0
    assert "Delhi, IN (28.6139, 77.209)" in result.stdout
    assert stub.calls == [("search", "Delhi")]
    assert stub.closed is True


def test_select_by_city(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["select", "Delhi"])

    assert result.exit_code == 0
    assert stub.calls == [("select_city", "Delhi")]
    assert "risk_level: High" in result.stdout
    assert "Risk level changed: Low -> High" in result.stdout


def test_select_by_coordinates(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["select", "--lat", "28.6", "--lon", "77.2"])

    assert result.exit_code == 0
    assert stub.calls == [("select_coordinates", 28.6, 77.2, "Your Location")]


def test_select_requires_city_or_coordinates(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["select", "--lat", "28.6"])

    assert result.exit_code != 0
    assert stub.calls == []


def test_select_rejects_city_with_partial_coordinates(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["select", "Delhi", "--lat", "28.6"])

    assert result.exit_code != 0
    assert stub.calls == []


def test_refresh_reports_stale_result(runner: CliRunner, stub: StubClient) -> None:
    stub.refresh_payload = {"location": DELHI, "reading": None, "transition": None, "stale": True}

    result = runner.invoke(app, ["refresh"])

    assert result.exit_code == 0
    assert "superseded" in result.stdout


def test_history(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["history"])

    assert result.exit_code == 0
    assert "entries: 2/24" in result.stdout
    assert result.stdout.count("[High]") == 2


def test_export_to_file(runner: CliRunner, stub: StubClient, tmp_path) -> None:
    target = tmp_path / "out.csv"

    result = runner.invoke(app, ["export", "--output", str(target)])

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8").startswith("Time,Temperature")


def test_export_to_stdout(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["export"])

    assert result.exit_code == 0
    assert "2024-06-01 12:00,38.0" in result.stdout


def test_alerts_show_and_enable(runner: CliRunner, stub: StubClient) -> None:
    shown = runner.invoke(app, ["alerts"])
    enabled = runner.invoke(app, ["alerts", "--enable", "--permission", "granted"])

    assert shown.exit_code == 0
    assert "enabled: False" in shown.stdout
    assert enabled.exit_code == 0
    assert "enabled: True" in enabled.stdout
    assert stub.calls == [("update_alerts", True, "granted")]


def test_alerts_permission_alone_keeps_enabled_flag(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["alerts", "--permission", "denied"])

    assert result.exit_code == 0
    assert stub.calls == [("update_alerts", False, "denied")]
    assert "permission: denied" in result.stdout


def test_base_url_option_reaches_client(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["--base-url", "http://monitor:9000/", "current"])

    assert result.exit_code == 0
    assert stub.config.base_url == "http://monitor:9000"
    assert "heat_index: 137.2 °C" in result.stdout


def test_exit_propagates_from_client(runner: CliRunner, stub: StubClient, monkeypatch) -> None:
    def failing_refresh() -> Dict[str, Any]:
        raise typer.Exit(code=1)

    monkeypatch.setattr(stub, "refresh", failing_refresh)

    result = runner.invoke(app, ["refresh"])

    assert result.exit_code == 1
