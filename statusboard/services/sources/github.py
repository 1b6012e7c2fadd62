import asyncio
from datetime import datetime, timezone

import httpx

from statusboard.core.exceptions import MalformedResponseError
from statusboard.schemas.records import (
    ActivityEvent,
    CIRun,
    CommitWeek,
    RateLimitInfo,
    RepoSummary,
)
from statusboard.services.sources.base import SourceAdapter, expect_dict, expect_list, gather_all

# ── Shared GitHub plumbing ───────────────────────────────────────────────────

FAILED_CONCLUSIONS = frozenset({"failure", "timed_out", "startup_failure"})


class GitHubAdapter(SourceAdapter):
    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient,
        org: str,
        token: str | None = None,
        timeout: float = 8.0,
    ):
        super().__init__(base_url, http_client, timeout=timeout)
        self.org = org
        self._token = token

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _summarize_event(event_type: str, payload: dict) -> str:
    """One-line human summary for an activity feed entry."""
    if event_type == "PushEvent":
        count = payload.get("size", len(payload.get("commits", [])))
        return f"pushed {count} commit{'s' if count != 1 else ''}"
    if event_type == "CreateEvent":
        ref_type = payload.get("ref_type", "ref")
        ref = payload.get("ref")
        return f"created {ref_type} {ref}" if ref else f"created {ref_type}"
    if event_type == "DeleteEvent":
        return f"deleted {payload.get('ref_type', 'ref')} {payload.get('ref', '')}".rstrip()
    if event_type == "PullRequestEvent":
        number = payload.get("number") or payload.get("pull_request", {}).get("number")
        return f"{payload.get('action', 'updated')} pull request #{number}"
    if event_type == "IssuesEvent":
        number = payload.get("issue", {}).get("number")
        return f"{payload.get('action', 'updated')} issue #{number}"
    if event_type == "IssueCommentEvent":
        return f"commented on #{payload.get('issue', {}).get('number')}"
    if event_type == "ReleaseEvent":
        return f"published release {payload.get('release', {}).get('tag_name', '')}".rstrip()
    if event_type == "WatchEvent":
        return "starred"
    if event_type == "ForkEvent":
        return "forked"
    return event_type.removesuffix("Event").lower()


# ── Adapters ─────────────────────────────────────────────────────────────────


class RepoActivityAdapter(GitHubAdapter):
    """Recent public events for the org (Activity Feed)."""

    source_id = "repo_activity"

    async def _collect(self) -> list[ActivityEvent]:
        payload = await self._get_json(f"/users/{self.org}/events", params={"per_page": 30})
        return self.normalize(payload)

    def normalize(self, payload) -> list[ActivityEvent]:
        events = []
        for raw in expect_list(payload, "events"):
            event_type = raw["type"]
            events.append(ActivityEvent(
                id=str(raw["id"]),
                type=event_type,
                repo=raw.get("repo", {}).get("name", ""),
                actor=raw.get("actor", {}).get("login", ""),
                created_at=_parse_ts(raw["created_at"]),
                summary=_summarize_event(event_type, raw.get("payload") or {}),
            ))
        return events


class RepoCatalogAdapter(GitHubAdapter):
    """All repositories owned by the org (Stats + Repos panels)."""

    source_id = "repo_catalog"

    async def _collect(self) -> list[RepoSummary]:
        payload = await self._get_json(
            f"/users/{self.org}/repos",
            params={"per_page": 100, "sort": "pushed"},
        )
        return self.normalize(payload)

    def normalize(self, payload) -> list[RepoSummary]:
        return [
            RepoSummary(
                name=raw["name"],
                url=raw.get("html_url", ""),
                description=raw.get("description"),
                language=raw.get("language"),
                stars=raw.get("stargazers_count", 0),
                is_fork=bool(raw.get("fork", False)),
                pushed_at=_parse_ts(raw.get("pushed_at")),
            )
            for raw in expect_list(payload, "repositories")
        ]


class CIStatusAdapter(GitHubAdapter):
    """Latest workflow run conclusion for each configured repo.

    A repo without Actions (404) reports ``unknown``; any other failure fails
    the whole result so the badge never mixes fresh and missing data.
    """

    source_id = "ci_status"

    def __init__(self, *args, repos: list[str], **kwargs):
        super().__init__(*args, **kwargs)
        self.repos = list(repos)

    async def _collect(self) -> list[CIRun]:
        payloads = await gather_all([self._latest_run(repo) for repo in self.repos])
        return [self.normalize(repo, payload) for repo, payload in zip(self.repos, payloads)]

    async def _latest_run(self, repo: str) -> dict | None:
        try:
            return await self._get_json(f"/repos/{self.org}/{repo}/actions/runs", params={"per_page": 1})
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise

    def normalize(self, repo: str, payload) -> CIRun:
        if payload is None:
            return CIRun(repo=repo)
        runs = expect_list(expect_dict(payload, "workflow runs")["workflow_runs"], "workflow runs")
        if not runs:
            return CIRun(repo=repo)
        run = runs[0]
        conclusion = run.get("conclusion")
        if conclusion == "success":
            mapped = "success"
        elif conclusion in FAILED_CONCLUSIONS:
            mapped = "failure"
        else:
            # in progress, cancelled, skipped, neutral
            mapped = "unknown"
        return CIRun(
            repo=repo,
            conclusion=mapped,
            updated_at=_parse_ts(run.get("updated_at")),
            url=run.get("html_url"),
        )


class CommitHistoryAdapter(GitHubAdapter):
    """Weekly commit buckets for the last year, summed across configured repos."""

    source_id = "commit_history"

    def __init__(self, *args, repos: list[str], **kwargs):
        super().__init__(*args, **kwargs)
        self.repos = list(repos)

    async def _collect(self) -> list[CommitWeek]:
        payloads = await gather_all([
            self._get_json(f"/repos/{self.org}/{repo}/stats/commit_activity") for repo in self.repos
        ])
        return self.normalize(payloads)

    def normalize(self, payloads: list) -> list[CommitWeek]:
        # GitHub answers 202 with an empty object while stats are computed
        weeks: dict[int, list[int]] = {}
        for payload in payloads:
            for raw in expect_list(payload, "commit activity weeks"):
                days = raw["days"]
                if len(days) != 7:
                    raise MalformedResponseError(f"week {raw.get('week')} has {len(days)} days")
                bucket = weeks.setdefault(int(raw["week"]), [0] * 7)
                for i, count in enumerate(days):
                    bucket[i] += int(count)
        return [
            CommitWeek(
                week_start=datetime.fromtimestamp(ts, tz=timezone.utc),
                days=days,
                total=sum(days),
            )
            for ts, days in sorted(weeks.items())
        ]


class ApiLatencyAdapter(GitHubAdapter):
    """Round-trip probe against /rate_limit; also reports remaining quota."""

    source_id = "api_latency"

    async def _collect(self) -> RateLimitInfo:
        start = asyncio.get_running_loop().time()
        payload = await self._get_json("/rate_limit")
        latency_ms = round((asyncio.get_running_loop().time() - start) * 1000, 1)
        return self.normalize(payload, latency_ms)

    def normalize(self, payload, latency_ms: float) -> RateLimitInfo:
        core = expect_dict(expect_dict(payload, "rate limit")["resources"], "resources")["core"]
        reset = core.get("reset")
        return RateLimitInfo(
            limit=core["limit"],
            remaining=core["remaining"],
            reset_at=datetime.fromtimestamp(reset, tz=timezone.utc) if reset else None,
            latency_ms=latency_ms,
        )
