"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.schemas import (
    AlertSettings,
    CityQuery,
    HistoryResponse,
    LocationModel,
    NotificationModel,
    ReadingModel,
    RefreshResponse,
    TransitionModel,
)
from notifications.sink import InboxNotificationSink
from providers.base import ProviderError
from services.export import export_filename
from services.monitor import (
    LocationNotFoundError,
    LocationNotSelectedError,
    MonitorService,
    RefreshOutcome,
    build_default_monitor,
)
from services.normalizer import MalformedPayloadError

router = APIRouter()


def get_monitor() -> MonitorService:
    return build_default_monitor()


def _upstream_error(exc: Exception) -> HTTPException:
    detail = exc.message if isinstance(exc, ProviderError) else str(exc)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


def _refresh_response(outcome: RefreshOutcome) -> RefreshResponse:
    return RefreshResponse(
        location=LocationModel.from_domain(outcome.location),
        reading=ReadingModel.from_domain(outcome.reading) if outcome.reading else None,
        transition=TransitionModel.from_domain(outcome.event) if outcome.event else None,
        stale=outcome.stale,
    )


@router.get(
    "/locations/search",
    response_model=List[LocationModel],
    summary="Suggest locations matching a city name.",
)
async def search_locations(
    q: str = Query(..., description="Partial or full city name."),
    monitor: MonitorService = Depends(get_monitor),
) -> List[LocationModel]:
    try:
        suggestions = await monitor.search(q)
    except (ProviderError, MalformedPayloadError) as exc:
        raise _upstream_error(exc) from exc
    return [LocationModel.from_domain(item) for item in suggestions]


@router.get(
    "/location",
    response_model=LocationModel,
    summary="Currently tracked location.",
)
async def get_location(monitor: MonitorService = Depends(get_monitor)) -> LocationModel:
    if monitor.location is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No location selected.",
        )
    return LocationModel.from_domain(monitor.location)


@router.put(
    "/location",
    response_model=RefreshResponse,
    summary="Track a location by coordinates and fetch its current reading.",
)
async def select_location(
    location: LocationModel,
    monitor: MonitorService = Depends(get_monitor),
) -> RefreshResponse:
    try:
        outcome = await monitor.select_location(location.to_domain())
    except (ProviderError, MalformedPayloadError) as exc:
        raise _upstream_error(exc) from exc
    return _refresh_response(outcome)


@router.put(
    "/location/by-name",
    response_model=RefreshResponse,
    summary="Resolve a city name and track it.",
)
async def select_city(
    body: CityQuery,
    monitor: MonitorService = Depends(get_monitor),
) -> RefreshResponse:
    try:
        outcome = await monitor.select_city(body.query)
    except LocationNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except (ProviderError, MalformedPayloadError) as exc:
        raise _upstream_error(exc) from exc
    return _refresh_response(outcome)


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="Fetch a new reading for the tracked location.",
)
async def refresh(monitor: MonitorService = Depends(get_monitor)) -> RefreshResponse:
    try:
        outcome = await monitor.refresh()
    except LocationNotSelectedError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except (ProviderError, MalformedPayloadError) as exc:
        raise _upstream_error(exc) from exc
    return _refresh_response(outcome)


@router.get(
    "/readings/current",
    response_model=ReadingModel,
    summary="Most recent reading in the window.",
)
async def current_reading(monitor: MonitorService = Depends(get_monitor)) -> ReadingModel:
    reading = monitor.state.current
    if reading is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No readings recorded yet.",
        )
    return ReadingModel.from_domain(reading)


@router.get(
    "/readings",
    response_model=HistoryResponse,
    summary="Rolling history window, oldest first.",
)
async def history(monitor: MonitorService = Depends(get_monitor)) -> HistoryResponse:
    state = monitor.state
    return HistoryResponse(
        location=LocationModel.from_domain(state.location) if state.location else None,
        capacity=state.history.capacity,
        readings=[ReadingModel.from_domain(item) for item in state.history.all()],
    )


@router.get(
    "/readings/export.csv",
    summary="Download the history window as CSV.",
    response_class=Response,
)
async def export_readings(monitor: MonitorService = Depends(get_monitor)) -> Response:
    filename = export_filename(datetime.now(timezone.utc).date())
    return Response(
        content=monitor.export_csv(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/alerts",
    response_model=AlertSettings,
    summary="Risk-change alert settings.",
)
async def get_alerts(monitor: MonitorService = Depends(get_monitor)) -> AlertSettings:
    return AlertSettings(enabled=monitor.alerts_enabled, permission=monitor.permission)


@router.put(
    "/alerts",
    response_model=AlertSettings,
    summary="Enable or disable risk-change alerts.",
)
async def update_alerts(
    settings: AlertSettings,
    monitor: MonitorService = Depends(get_monitor),
) -> AlertSettings:
    monitor.set_alerts(settings.enabled, settings.permission)
    return AlertSettings(enabled=monitor.alerts_enabled, permission=monitor.permission)


@router.get(
    "/notifications",
    response_model=List[NotificationModel],
    summary="Recently delivered alerts, newest first.",
)
async def notifications(
    monitor: MonitorService = Depends(get_monitor),
) -> List[NotificationModel]:
    sink = monitor.dispatcher.sink
    if not isinstance(sink, InboxNotificationSink):
        return []
    return [NotificationModel.from_domain(item) for item in sink.recent()]


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
