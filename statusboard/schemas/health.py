from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str  # "ok" or "degraded"
    sources_ok: int = 0
    sources_failed: int = 0
    sources_pending: int = 0
    interval_seconds: int = 0
    uptime_seconds: float = 0.0
    version: str = "0.1.0"
