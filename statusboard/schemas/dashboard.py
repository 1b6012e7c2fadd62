from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

from statusboard.schemas.results import RefreshCycle, SourceResult


class PanelState(BaseModel):
    panel_id: str
    status: Literal["loading", "ok", "degraded"] = "loading"
    data: dict[str, Any] | None = None
    updated_at: datetime | None = None
    revision: int = 0


class PanelsResponse(BaseModel):
    panels: list[PanelState]


class SourcesResponse(BaseModel):
    sources: dict[str, SourceResult]
    pending: list[str]  # adapters with no result yet


class UptimeSampleOut(BaseModel):
    timestamp: datetime
    ok: bool


class ServiceUptime(BaseModel):
    service_id: str
    source_id: str
    percentage: str  # "96.7%" or placeholder
    samples: list[UptimeSampleOut]


class UptimeHistoryResponse(BaseModel):
    capacity: int
    services: list[ServiceUptime]


class RefreshStateResponse(BaseModel):
    cycle: RefreshCycle
    timer_armed: bool
    interval_options: list[int]


class IntervalRequest(BaseModel):
    seconds: Literal[30, 60, 300, 0]


class TriggerResponse(BaseModel):
    triggered: list[str]
    completed: bool
    cycle: RefreshCycle
