"""Rolling per-service uptime samples, appended once per refresh tick."""

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone

UPTIME_CAPACITY = 30

# service_id → source whose result decides the sample
MONITORED_SERVICES: dict[str, str] = {
    "ci_cd": "ci_status",
    "packages": "registry_ping",
    "chain": "chain_network",
    "agent": "page_latency",
}


@dataclass(frozen=True)
class UptimeSample:
    service_id: str
    timestamp: datetime
    ok: bool


class UptimeHistoryStore:
    """Fixed-capacity ring buffer per service, ordered oldest to newest.

    The scheduler is the only writer; renderers read through ``snapshot``.
    """

    def __init__(self, capacity: int = UPTIME_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._buffers: dict[str, deque[UptimeSample]] = {}

    def record(self, service_id: str, ok: bool, timestamp: datetime | None = None) -> UptimeSample:
        sample = UptimeSample(
            service_id=service_id,
            timestamp=timestamp or datetime.now(timezone.utc),
            ok=bool(ok),
        )
        buffer = self._buffers.get(service_id)
        if buffer is None:
            buffer = self._buffers[service_id] = deque(maxlen=self.capacity)
        buffer.append(sample)  # deque drops the oldest sample when full
        return sample

    def snapshot(self, service_id: str) -> list[UptimeSample]:
        return list(self._buffers.get(service_id, ()))

    def services(self) -> list[str]:
        return sorted(self._buffers)
