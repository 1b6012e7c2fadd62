from fastapi import APIRouter, Depends, Query

from statusboard.dependencies import get_board, get_scheduler, get_uptime_store
from statusboard.schemas.dashboard import (
    IntervalRequest,
    PanelsResponse,
    PanelState,
    RefreshStateResponse,
    ServiceUptime,
    SourcesResponse,
    TriggerResponse,
    UptimeHistoryResponse,
    UptimeSampleOut,
)
from statusboard.services.derivation import uptime_percentage
from statusboard.services.panels import PanelBoard
from statusboard.services.scheduler import INTERVAL_OPTIONS, RefreshScheduler
from statusboard.services.uptime_history import MONITORED_SERVICES, UptimeHistoryStore

router = APIRouter()


@router.get("/dashboard/panels")
async def list_panels(board: PanelBoard = Depends(get_board)) -> PanelsResponse:
    """Current rendered state of every panel."""
    return PanelsResponse(panels=board.states())


@router.get("/dashboard/panels/{panel_id}")
async def get_panel(panel_id: str, board: PanelBoard = Depends(get_board)) -> PanelState:
    return board.state(panel_id)


@router.get("/dashboard/sources")
async def list_sources(scheduler: RefreshScheduler = Depends(get_scheduler)) -> SourcesResponse:
    """Latest result per adapter, ok or failed."""
    results = scheduler.results()
    return SourcesResponse(
        sources=results,
        pending=[sid for sid in scheduler.source_ids if sid not in results],
    )


@router.get("/dashboard/uptime")
async def uptime_history(store: UptimeHistoryStore = Depends(get_uptime_store)) -> UptimeHistoryResponse:
    """Rolling uptime samples per monitored service, oldest first."""
    services = []
    for service_id, source_id in MONITORED_SERVICES.items():
        samples = store.snapshot(service_id)
        services.append(ServiceUptime(
            service_id=service_id,
            source_id=source_id,
            percentage=uptime_percentage(samples),
            samples=[UptimeSampleOut(timestamp=s.timestamp, ok=s.ok) for s in samples],
        ))
    return UptimeHistoryResponse(capacity=store.capacity, services=services)


@router.get("/dashboard/refresh")
async def refresh_state(scheduler: RefreshScheduler = Depends(get_scheduler)) -> RefreshStateResponse:
    return RefreshStateResponse(
        cycle=scheduler.cycle,
        timer_armed=scheduler.timer is not None,
        interval_options=list(INTERVAL_OPTIONS),
    )


@router.post("/dashboard/refresh")
async def trigger_refresh(
    wait: bool = Query(False, description="Wait for every source in the tick to settle"),
    scheduler: RefreshScheduler = Depends(get_scheduler),
) -> TriggerResponse:
    """Manual refresh. Returns immediately unless ``wait`` is set."""
    if wait:
        await scheduler.refresh()
    else:
        scheduler.trigger_now()
    return TriggerResponse(triggered=scheduler.source_ids, completed=wait, cycle=scheduler.cycle)


@router.put("/dashboard/refresh/interval")
async def set_refresh_interval(
    body: IntervalRequest,
    scheduler: RefreshScheduler = Depends(get_scheduler),
) -> RefreshStateResponse:
    """Interval selector: 30, 60, 300 seconds, or 0 for off."""
    scheduler.set_interval(body.seconds)
    return RefreshStateResponse(
        cycle=scheduler.cycle,
        timer_armed=scheduler.timer is not None,
        interval_options=list(INTERVAL_OPTIONS),
    )
