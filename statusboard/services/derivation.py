"""Pure metric derivation: normalized records in, display values out.

Nothing here reads the clock or keeps state; callers pass ``now``/``today``
so the same inputs always produce the same output.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from statusboard.schemas.records import (
    ActivityEvent,
    CIRun,
    CommitWeek,
    PackageEntry,
    RepoSummary,
)
from statusboard.schemas.results import SourceFailed, SourceOk
from statusboard.services.uptime_history import UptimeSample

MICRO_ALGO_PER_ALGO = Decimal(1_000_000)
STAT_BALANCE_PLACES = 3
WALLET_BALANCE_PLACES = 6

PLACEHOLDER = "—"

# Lower bound of each intensity level: 0, 1–2, 3–4, 5–7, 8+
CONTRIBUTION_THRESHOLDS = (0, 1, 3, 5, 8)
CONTRIBUTION_LEGEND = ("Less", "", "", "", "More")


# ── Counts ───────────────────────────────────────────────────────────────────


def package_counts(catalog: Sequence[PackageEntry]) -> dict:
    """Catalog size and whether every entry's tests pass (empty is not passing)."""
    return {
        "total": len(catalog),
        "all_passing": bool(catalog) and all(p.tests_passing for p in catalog),
        "tests": sum(p.test_count for p in catalog),
    }


def repo_counts(repos: Sequence[RepoSummary]) -> dict:
    return {
        "total": len(repos),
        "owned": sum(1 for r in repos if not r.is_fork),
    }


def ci_summary(runs: Sequence[CIRun]) -> dict:
    return {
        "passing": sum(1 for r in runs if r.conclusion == "success"),
        "failing": sum(1 for r in runs if r.conclusion == "failure"),
        "total": len(runs),
    }


def ci_badge(latest: SourceOk | SourceFailed | None, last_good: SourceOk | None) -> dict:
    """CI badge state.

    A failed latest fetch keeps the last good counts but marks them stale and
    the state ``unknown``, so old success is never shown as fresh.
    """
    if last_good is None:
        return {"state": "unknown", "label": PLACEHOLDER, "passing": None, "total": None, "stale": False}

    summary = ci_summary(last_good.data)
    stale = isinstance(latest, SourceFailed)
    if stale:
        state = "unknown"
    elif summary["failing"]:
        state = "failing"
    elif summary["total"] and summary["passing"] == summary["total"]:
        state = "passing"
    else:
        state = "unknown"
    return {
        "state": state,
        "label": f"{summary['passing']}/{summary['total']} passing",
        "passing": summary["passing"],
        "total": summary["total"],
        "stale": stale,
    }


# ── Contribution graph ───────────────────────────────────────────────────────


def contribution_level(count: int) -> int:
    level = 0
    for i, threshold in enumerate(CONTRIBUTION_THRESHOLDS):
        if count >= threshold:
            level = i
    return level


def daily_commit_counts(weeks: Iterable[CommitWeek]) -> dict[date, int]:
    counts: dict[date, int] = {}
    for week in weeks:
        start = week.week_start.astimezone(timezone.utc).date()
        for offset, count in enumerate(week.days):
            day = start + timedelta(days=offset)
            counts[day] = counts.get(day, 0) + count
    return counts


def contribution_cells(weeks: Iterable[CommitWeek], today: date, days: int = 365) -> list[dict]:
    """One cell per day for the trailing ``days`` days, oldest first, ending today."""
    counts = daily_commit_counts(weeks)
    first = today - timedelta(days=days - 1)
    cells = []
    for offset in range(days):
        day = first + timedelta(days=offset)
        count = counts.get(day, 0)
        cells.append({
            "date": day.isoformat(),
            "weekday": (day.weekday() + 1) % 7,  # Sunday = 0, matching GitHub's week layout
            "count": count,
            "level": contribution_level(count),
        })
    return cells


def contribution_graph(weeks: Sequence[CommitWeek], today: date, days: int = 365) -> dict:
    cells = contribution_cells(weeks, today, days)
    return {
        "cells": cells,
        "total": sum(c["count"] for c in cells),
        "legend": list(CONTRIBUTION_LEGEND),
        "thresholds": list(CONTRIBUTION_THRESHOLDS),
    }


# ── Unit conversion / formatting ─────────────────────────────────────────────


def format_micro_algo(amount: int, places: int) -> str:
    algo = Decimal(amount) / MICRO_ALGO_PER_ALGO
    return str(algo.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def format_stat_balance(amount: int) -> str:
    return format_micro_algo(amount, STAT_BALANCE_PLACES)


def format_wallet_balance(amount: int) -> str:
    return f"{format_micro_algo(amount, WALLET_BALANCE_PLACES)} ALGO"


def format_round(value: int) -> str:
    if value >= 1_000_000:
        millions = (Decimal(value) / 1_000_000).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"{millions}M"
    return f"{value:,}"


def format_seconds(seconds: float) -> str:
    return f"{seconds:.1f}s"


def format_catchup(catchup_ms: int) -> str:
    if catchup_ms == 0:
        return "Synced"
    return f"{catchup_ms}ms"


def format_latency(latency_ms: float | None) -> str:
    if latency_ms is None:
        return PLACEHOLDER
    return f"{round(latency_ms)}ms"


def uptime_percentage(samples: Sequence[UptimeSample]) -> str:
    if not samples:
        return PLACEHOLDER
    pct = sum(1 for s in samples if s.ok) / len(samples) * 100
    return f"{round(pct, 1):g}%"


def relative_time(ts: datetime | None, now: datetime) -> str:
    if ts is None:
        return PLACEHOLDER
    seconds = int((now - ts).total_seconds())
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 30:
        return f"{days}d ago"
    if days < 365:
        return f"{days // 30}mo ago"
    return f"{days // 365}y ago"


# ── Lists ────────────────────────────────────────────────────────────────────


def activity_feed(events: Sequence[ActivityEvent], now: datetime, limit: int = 10) -> list[dict]:
    ordered = sorted(events, key=lambda e: e.created_at, reverse=True)[:limit]
    return [
        {
            "id": e.id,
            "type": e.type,
            "repo": e.repo,
            "actor": e.actor,
            "summary": e.summary,
            "when": relative_time(e.created_at, now),
        }
        for e in ordered
    ]


def repo_cards(repos: Sequence[RepoSummary], now: datetime) -> list[dict]:
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    ordered = sorted(repos, key=lambda r: r.pushed_at or epoch, reverse=True)
    return [
        {
            "name": r.name,
            "url": r.url,
            "description": r.description or "",
            "language": r.language,
            "stars": r.stars,
            "fork": r.is_fork,
            "updated": relative_time(r.pushed_at, now),
        }
        for r in ordered
    ]
