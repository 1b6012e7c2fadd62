"""Normalized records produced by source adapters.

Vendor field names and units stop at the adapter boundary; everything past
it works with these models.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class RepoSummary(BaseModel):
    name: str
    url: str
    description: str | None = None
    language: str | None = None
    stars: int = 0
    is_fork: bool = False
    pushed_at: datetime | None = None


class ActivityEvent(BaseModel):
    id: str
    type: str
    repo: str
    actor: str
    created_at: datetime
    summary: str


class CIRun(BaseModel):
    repo: str
    conclusion: Literal["success", "failure", "unknown"] = "unknown"
    updated_at: datetime | None = None
    url: str | None = None


class CommitWeek(BaseModel):
    week_start: datetime  # UTC midnight of the week's first day (Sunday)
    days: list[int] = Field(min_length=7, max_length=7)
    total: int = 0


class ChainAccountInfo(BaseModel):
    address: str
    micro_algo_balance: int
    min_balance_micro_algo: int = 0
    asset_count: int = 0
    created_app_count: int = 0


class ChainNetworkInfo(BaseModel):
    last_round: int
    seconds_since_last_round: float
    catchup_ms: int = 0
    next_version_label: str | None = None


class LatencyProbe(BaseModel):
    url: str
    status_code: int
    latency_ms: float


class RateLimitInfo(BaseModel):
    limit: int
    remaining: int
    reset_at: datetime | None = None
    latency_ms: float


class PackageEntry(BaseModel):
    name: str
    description: str = ""
    version: str | None = None
    tests_passing: bool = False
    test_count: int = 0
    url: str | None = None
