from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    NETWORK_UNREACHABLE = "network_unreachable"
    HTTP_ERROR = "http_error"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


class ErrorInfo(BaseModel):
    kind: ErrorKind
    status_code: int | None = None  # only set for http_error
    detail: str | None = None


class SourceOk(BaseModel):
    status: Literal["ok"] = "ok"
    source_id: str
    data: Any
    fetched_at: datetime
    latency_ms: float


class SourceFailed(BaseModel):
    status: Literal["failed"] = "failed"
    source_id: str
    error: ErrorInfo
    attempted_at: datetime


SourceResult = Annotated[SourceOk | SourceFailed, Field(discriminator="status")]


class RefreshCycle(BaseModel):
    started_at: datetime | None = None
    interval_seconds: int = 0  # 0 = manual only
    in_flight: list[str] = []
    ticks: int = 0
