"""Refresh scheduler: fans out to every source adapter on a repeating timer."""

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import datetime, timezone

import structlog

from statusboard.core.exceptions import InvalidIntervalError
from statusboard.schemas.results import RefreshCycle, SourceFailed, SourceOk
from statusboard.services.sources.base import SourceAdapter
from statusboard.services.uptime_history import MONITORED_SERVICES, UptimeHistoryStore

logger = structlog.get_logger()

INTERVAL_OPTIONS = (30, 60, 300, 0)  # 0 = off

ResultListener = Callable[[str, SourceOk | SourceFailed], None]


class RefreshScheduler:
    """Owns the refresh timer and the latest result per adapter.

    Each tick starts one task per adapter without waiting on the others.
    Results are applied in completion order, so when ticks overlap the last
    fetch to finish wins its slot. ``stop()`` only halts future ticks;
    fetches already in flight still land.
    """

    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        uptime_store: UptimeHistoryStore,
        monitored: Mapping[str, str] = MONITORED_SERVICES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._adapters = {a.source_id: a for a in adapters}
        self._uptime = uptime_store
        self._service_by_source = {source: service for service, source in monitored.items()}
        self._sleep = sleep

        self._latest: dict[str, SourceOk | SourceFailed] = {}
        self._last_good: dict[str, SourceOk] = {}
        self._listeners: list[ResultListener] = []

        self._timer: asyncio.Task | None = None
        self._interval = 0
        self._in_flight: Counter[str] = Counter()
        self._pending: set[asyncio.Task] = set()
        self._started_at: datetime | None = None
        self._ticks = 0

    # ── Read accessors ───────────────────────────────────────────────────────

    @property
    def source_ids(self) -> list[str]:
        return list(self._adapters)

    @property
    def interval_seconds(self) -> int:
        return self._interval

    @property
    def timer(self) -> asyncio.Task | None:
        return self._timer

    @property
    def cycle(self) -> RefreshCycle:
        return RefreshCycle(
            started_at=self._started_at,
            interval_seconds=self._interval,
            in_flight=sorted(self._in_flight),
            ticks=self._ticks,
        )

    def latest(self, source_id: str) -> SourceOk | SourceFailed | None:
        return self._latest.get(source_id)

    def last_good(self, source_id: str) -> SourceOk | None:
        return self._last_good.get(source_id)

    def results(self) -> dict[str, SourceOk | SourceFailed]:
        return dict(self._latest)

    def add_listener(self, listener: ResultListener) -> None:
        self._listeners.append(listener)

    # ── Timer control ────────────────────────────────────────────────────────

    def start(self, interval_seconds: int) -> asyncio.Task | None:
        """Arm the repeating timer, replacing any existing one. 0 arms nothing."""
        if isinstance(interval_seconds, bool) or not isinstance(interval_seconds, int) or interval_seconds < 0:
            raise InvalidIntervalError(interval_seconds)

        self._cancel_timer()
        self._interval = interval_seconds
        if interval_seconds == 0:
            logger.info("refresh_timer_disabled")
            return None

        self._timer = asyncio.create_task(self._timer_loop(interval_seconds), name="refresh-timer")
        logger.info("refresh_timer_armed", interval_seconds=interval_seconds)
        return self._timer

    def set_interval(self, seconds: int) -> asyncio.Task | None:
        return self.start(seconds)

    def stop(self) -> None:
        self._cancel_timer()
        self._interval = 0
        logger.info("refresh_timer_stopped", in_flight=sorted(self._in_flight))

    def trigger_now(self) -> list[asyncio.Task]:
        """Start one tick immediately. Returns the per-adapter tasks without awaiting them."""
        self._ticks += 1
        self._started_at = datetime.now(timezone.utc)
        tasks = []
        for adapter in self._adapters.values():
            task = asyncio.create_task(self._run_source(adapter), name=f"fetch-{adapter.source_id}")
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            tasks.append(task)
        logger.info("refresh_tick", tick=self._ticks, sources=len(tasks))
        return tasks

    async def refresh(self) -> dict[str, SourceOk | SourceFailed]:
        """Trigger a tick and wait for every adapter in it to settle."""
        await asyncio.gather(*self.trigger_now())
        return self.results()

    async def aclose(self) -> None:
        """Shutdown: stop ticking and cancel outstanding fetches."""
        self.stop()
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    # ── Internals ────────────────────────────────────────────────────────────

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _timer_loop(self, interval: int) -> None:
        while True:
            await self._sleep(interval)
            self.trigger_now()

    async def _run_source(self, adapter: SourceAdapter) -> SourceOk | SourceFailed:
        source_id = adapter.source_id
        self._in_flight[source_id] += 1
        try:
            result = await adapter.fetch()
        finally:
            self._in_flight[source_id] -= 1
            if self._in_flight[source_id] <= 0:
                del self._in_flight[source_id]
        self._apply(source_id, result)
        return result

    def _apply(self, source_id: str, result: SourceOk | SourceFailed) -> None:
        self._latest[source_id] = result
        if isinstance(result, SourceOk):
            self._last_good[source_id] = result

        service = self._service_by_source.get(source_id)
        if service is not None:
            self._uptime.record(service, isinstance(result, SourceOk))

        for listener in self._listeners:
            try:
                listener(source_id, result)
            except Exception:
                logger.exception("refresh_listener_failed", source=source_id)
