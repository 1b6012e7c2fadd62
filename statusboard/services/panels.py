"""Panel renderers and the board that holds their rendered state.

Each panel owns one region of the page. It re-renders only when one of its
own sources completes, reads last-good data so a later failure leaves the
previous content in place (marked ``degraded``), and stays ``loading`` until
its first successful fetch.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Protocol

import structlog

from statusboard.core.exceptions import PanelNotFoundError
from statusboard.schemas.dashboard import PanelState
from statusboard.schemas.records import PackageEntry
from statusboard.schemas.results import SourceFailed, SourceOk
from statusboard.services import derivation
from statusboard.services.uptime_history import MONITORED_SERVICES, UptimeHistoryStore

logger = structlog.get_logger()

SUBSCRIBER_QUEUE_SIZE = 100


class SourceView(Protocol):
    def latest(self, source_id: str) -> SourceOk | SourceFailed | None: ...

    def last_good(self, source_id: str) -> SourceOk | None: ...


def _data(view: SourceView, source_id: str):
    result = view.last_good(source_id)
    return result.data if result is not None else None


class Panel(ABC):
    panel_id: str = ""
    sources: tuple[str, ...] = ()

    def has_data(self, view: SourceView) -> bool:
        return any(view.last_good(s) is not None for s in self.sources)

    @abstractmethod
    def derive(self, view: SourceView, now: datetime) -> dict:
        ...


# ── Panels ───────────────────────────────────────────────────────────────────


class StatsPanel(Panel):
    panel_id = "stats"
    sources = ("repo_catalog", "ci_status", "chain_account", "api_latency")

    def __init__(self, catalog: Sequence[PackageEntry]):
        self.catalog = list(catalog)

    def derive(self, view, now):
        packages = derivation.package_counts(self.catalog)
        cards = {
            "packages": {
                "value": str(packages["total"]),
                "detail": "all passing" if packages["all_passing"] else "tests failing",
                "all_passing": packages["all_passing"],
            },
        }

        repos = _data(view, "repo_catalog")
        if repos is not None:
            counts = derivation.repo_counts(repos)
            cards["repos"] = {"value": str(counts["total"]), "detail": f"{counts['owned']} owned", "owned": counts["owned"]}
        else:
            cards["repos"] = {"value": derivation.PLACEHOLDER, "detail": "", "owned": None}

        badge = derivation.ci_badge(view.latest("ci_status"), view.last_good("ci_status"))
        cards["ci"] = {"value": badge["label"], "detail": badge["state"], "stale": badge["stale"]}

        account = _data(view, "chain_account")
        cards["balance"] = {
            "value": derivation.format_stat_balance(account.micro_algo_balance) if account else derivation.PLACEHOLDER,
            "detail": "ALGO",
        }

        rate = _data(view, "api_latency")
        cards["api_latency"] = {
            "value": derivation.format_latency(rate.latency_ms if rate else None),
            "detail": f"{rate.remaining}/{rate.limit} requests left" if rate else "",
        }
        return {"cards": cards}


class PackagesPanel(Panel):
    panel_id = "packages"
    sources = ("registry_ping",)

    def __init__(self, catalog: Sequence[PackageEntry]):
        self.catalog = list(catalog)

    def has_data(self, view):
        # the catalog is local; only the registry block depends on the ping
        return True

    def derive(self, view, now):
        probe = _data(view, "registry_ping")
        latest = view.latest("registry_ping")
        return {
            "packages": [p.model_dump() for p in self.catalog],
            "counts": derivation.package_counts(self.catalog),
            "registry": {
                "reachable": isinstance(latest, SourceOk),
                "latency": derivation.format_latency(probe.latency_ms if probe else None),
            },
        }


class CIPanel(Panel):
    panel_id = "ci"
    sources = ("ci_status",)

    def derive(self, view, now):
        runs = _data(view, "ci_status") or []
        return {
            "badge": derivation.ci_badge(view.latest("ci_status"), view.last_good("ci_status")),
            "runs": [
                {
                    "repo": r.repo,
                    "conclusion": r.conclusion,
                    "updated": derivation.relative_time(r.updated_at, now),
                    "url": r.url,
                }
                for r in runs
            ],
        }


class ContributionsPanel(Panel):
    panel_id = "contributions"
    sources = ("commit_history",)

    def derive(self, view, now):
        weeks = _data(view, "commit_history") or []
        return derivation.contribution_graph(weeks, now.astimezone(timezone.utc).date())


class ActivityPanel(Panel):
    panel_id = "activity"
    sources = ("repo_activity",)

    def __init__(self, limit: int = 10):
        self.limit = limit

    def derive(self, view, now):
        events = _data(view, "repo_activity") or []
        return {"events": derivation.activity_feed(events, now, self.limit)}


class WalletPanel(Panel):
    panel_id = "wallet"
    sources = ("chain_account",)

    def derive(self, view, now):
        account = _data(view, "chain_account")
        return {
            "address": account.address,
            "balance": derivation.format_wallet_balance(account.micro_algo_balance),
            "min_balance": derivation.format_wallet_balance(account.min_balance_micro_algo),
            "assets": account.asset_count,
            "created_apps": account.created_app_count,
        }


class NetworkPanel(Panel):
    panel_id = "network"
    sources = ("chain_network",)

    def derive(self, view, now):
        status = _data(view, "chain_network")
        return {
            "round": f"Round {derivation.format_round(status.last_round)}",
            "round_time": derivation.format_seconds(status.seconds_since_last_round),
            "catchup": derivation.format_catchup(status.catchup_ms),
            "next_version": status.next_version_label or derivation.PLACEHOLDER,
        }


SERVICE_LABELS = {
    "ci_cd": "CI/CD",
    "packages": "Packages",
    "chain": "Algorand Node",
    "agent": "Agent",
}


class UptimePanel(Panel):
    panel_id = "uptime"
    sources = tuple(MONITORED_SERVICES.values())

    def __init__(self, store: UptimeHistoryStore):
        self.store = store

    def has_data(self, view):
        return any(self.store.snapshot(s) for s in MONITORED_SERVICES)

    def derive(self, view, now):
        services = []
        for service_id, source_id in MONITORED_SERVICES.items():
            samples = self.store.snapshot(service_id)
            good = view.last_good(source_id)
            services.append({
                "service_id": service_id,
                "label": SERVICE_LABELS.get(service_id, service_id),
                "up": isinstance(view.latest(source_id), SourceOk),
                "percentage": derivation.uptime_percentage(samples),
                "bars": [s.ok for s in samples],
                "latency": derivation.format_latency(good.latency_ms if good else None),
            })
        return {"services": services, "capacity": self.store.capacity}


class ReposPanel(Panel):
    panel_id = "repos"
    sources = ("repo_catalog",)

    def derive(self, view, now):
        repos = _data(view, "repo_catalog") or []
        return {"repos": derivation.repo_cards(repos, now), "counts": derivation.repo_counts(repos)}


def build_panels(
    catalog: Sequence[PackageEntry],
    uptime_store: UptimeHistoryStore,
    activity_limit: int = 10,
) -> list[Panel]:
    return [
        StatsPanel(catalog),
        PackagesPanel(catalog),
        CIPanel(),
        ContributionsPanel(),
        ActivityPanel(activity_limit),
        WalletPanel(),
        NetworkPanel(),
        UptimePanel(uptime_store),
        ReposPanel(),
    ]


# ── Board ────────────────────────────────────────────────────────────────────


class PanelBoard:
    """Rendered state of every panel, updated as source results arrive."""

    def __init__(
        self,
        panels: Sequence[Panel],
        view: SourceView,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._panels = {p.panel_id: p for p in panels}
        self._states = {pid: PanelState(panel_id=pid) for pid in self._panels}
        self._view = view
        self._clock = clock
        self._subscribers: set[asyncio.Queue] = set()

    @property
    def panel_ids(self) -> list[str]:
        return list(self._panels)

    def state(self, panel_id: str) -> PanelState:
        if panel_id not in self._states:
            raise PanelNotFoundError(panel_id)
        return self._states[panel_id]

    def states(self) -> list[PanelState]:
        return list(self._states.values())

    def on_result(self, source_id: str, result: SourceOk | SourceFailed) -> None:
        """Scheduler listener: re-render the panels fed by ``source_id``."""
        for panel in self._panels.values():
            if source_id in panel.sources:
                self.render(panel.panel_id)

    def render(self, panel_id: str) -> PanelState:
        panel = self._panels.get(panel_id)
        if panel is None:
            raise PanelNotFoundError(panel_id)
        previous = self._states[panel_id]
        if not panel.has_data(self._view):
            return previous

        now = self._clock()
        try:
            data = panel.derive(self._view, now)
        except Exception:
            logger.exception("panel_render_failed", panel=panel_id)
            return previous

        degraded = any(isinstance(self._view.latest(s), SourceFailed) for s in panel.sources)
        state = PanelState(
            panel_id=panel_id,
            status="degraded" if degraded else "ok",
            data=data,
            updated_at=now,
            revision=previous.revision + 1,
        )
        self._states[panel_id] = state
        self._publish(state)
        return state

    # ── Push subscribers ─────────────────────────────────────────────────────

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def _publish(self, state: PanelState) -> None:
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(state)
            except asyncio.QueueFull:
                logger.warning("panel_subscriber_lagging", panel=state.panel_id)
