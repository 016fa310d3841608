from __future__ import annotations
import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.monitor import build_default_monitor, default_location, run_periodic_refresh
from settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    monitor = build_default_monitor()
    monitor.restore(default_location())

    refresher: asyncio.Task[None] | None = None
    if settings.refresh_interval > 0:
        refresher = asyncio.create_task(
            run_periodic_refresh(monitor, settings.refresh_interval)
        )
    try:
        yield
    finally:
        if refresher is not None:
            refresher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await refresher
        await monitor.aclose()
        build_default_monitor.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Heat Risk Monitor",
        description="Heat index, air quality and UV risk tracking for one location.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
