from fastapi import Request

from statusboard.services.panels import PanelBoard
from statusboard.services.scheduler import RefreshScheduler
from statusboard.services.uptime_history import UptimeHistoryStore


def get_scheduler(request: Request) -> RefreshScheduler:
    """Return the refresh scheduler stored on app state during lifespan."""
    return request.app.state.scheduler


def get_board(request: Request) -> PanelBoard:
    return request.app.state.panel_board


def get_uptime_store(request: Request) -> UptimeHistoryStore:
    return request.app.state.uptime_store
