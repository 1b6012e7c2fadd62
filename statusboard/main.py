from collections.abc import Sequence
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statusboard.api.v1.router import v1_router
from statusboard.config import settings
from statusboard.core.exceptions import DashboardError, dashboard_error_handler
from statusboard.core.middleware import RequestLoggingMiddleware
from statusboard.schemas.records import PackageEntry
from statusboard.services.catalog import load_catalog
from statusboard.services.panels import PanelBoard, build_panels
from statusboard.services.scheduler import RefreshScheduler
from statusboard.services.sources import SourceAdapter, build_adapters
from statusboard.services.uptime_history import UptimeHistoryStore

_NAME_TO_LEVEL = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "warn": 30,
    "error": 40,
    "critical": 50,
}

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        _NAME_TO_LEVEL.get(settings.statusboard_log_level.lower(), 20)
    ),
)

logger = structlog.get_logger()


def init_dashboard(
    app: FastAPI,
    adapters: Sequence[SourceAdapter],
    catalog: Sequence[PackageEntry],
    activity_limit: int = 10,
) -> RefreshScheduler:
    """Wire uptime store, scheduler and panel board onto app state."""
    uptime_store = UptimeHistoryStore()
    scheduler = RefreshScheduler(adapters, uptime_store)
    board = PanelBoard(build_panels(catalog, uptime_store, activity_limit), view=scheduler)
    scheduler.add_listener(board.on_result)

    app.state.uptime_store = uptime_store
    app.state.scheduler = scheduler
    app.state.panel_board = board
    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    # One shared client; each adapter enforces its own deadline on top of it
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(connect=5.0, read=30.0, write=5.0, pool=5.0),
        headers={"User-Agent": "statusboard/0.1.0"},
        follow_redirects=True,
    )
    adapters = build_adapters(settings, http_client)
    catalog = load_catalog(settings.package_catalog_path)
    scheduler = init_dashboard(app, adapters, catalog, settings.activity_feed_limit)

    if settings.refresh_on_startup:
        scheduler.trigger_now()
    scheduler.start(settings.refresh_interval_seconds)

    logger.info(
        "statusboard_starting",
        sources=scheduler.source_ids,
        interval_seconds=settings.refresh_interval_seconds,
        packages=len(catalog),
    )
    yield

    await scheduler.aclose()
    await http_client.aclose()
    logger.info("statusboard_stopping")


app = FastAPI(
    title="Status Dashboard",
    description="Aggregates CI, repository, chain and uptime data into auto-refreshing panels",
    version="0.1.0",
    lifespan=lifespan,
)

# Exception handler
app.add_exception_handler(DashboardError, dashboard_error_handler)

# Middleware (Starlette: last-added = outermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.statusboard_cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Routes
app.include_router(v1_router)


@app.get("/")
async def root():
    return {"service": "statusboard", "version": "0.1.0"}
