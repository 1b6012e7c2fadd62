import time

from fastapi import APIRouter, Depends

from statusboard.dependencies import get_scheduler
from statusboard.schemas.health import HealthResponse
from statusboard.schemas.results import SourceOk
from statusboard.services.scheduler import RefreshScheduler

router = APIRouter()

_start_time = time.monotonic()


@router.get("/dashboard/health")
async def health_check(scheduler: RefreshScheduler = Depends(get_scheduler)) -> HealthResponse:
    """Service liveness plus a count of sources by latest outcome."""
    results = scheduler.results()
    ok = sum(1 for r in results.values() if isinstance(r, SourceOk))
    failed = len(results) - ok

    return HealthResponse(
        status="degraded" if failed else "ok",
        sources_ok=ok,
        sources_failed=failed,
        sources_pending=len(scheduler.source_ids) - len(results),
        interval_seconds=scheduler.interval_seconds,
        uptime_seconds=round(time.monotonic() - _start_time, 1),
    )
