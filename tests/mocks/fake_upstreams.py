"""In-process stand-in for GitHub, algod, the npm registry and the published site.

Run standalone: uvicorn tests.mocks.fake_upstreams:app --port 8002
"""

from datetime import datetime, timedelta, timezone

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse

app = FastAPI(title="Fake upstreams")

ORG = "acme"
ACCOUNT = "ALGOTESTACCOUNT"
MICRO_ALGO_AMOUNT = 12_345_678
WEEK_DAYS = [2, 3, 1, 0, 4, 2, 1]


def populated_week_start() -> datetime:
    """A Sunday two to three weeks back, always inside the trailing year."""
    today = datetime.now(timezone.utc).date()
    sunday = today - timedelta(days=(today.weekday() + 1) % 7 + 14)
    return datetime(sunday.year, sunday.month, sunday.day, tzinfo=timezone.utc)


# ── GitHub ───────────────────────────────────────────────────────────────────


@app.get("/users/{org}/events")
async def user_events(org: str):
    return [
        {
            "id": "101",
            "type": "PushEvent",
            "actor": {"login": "octo"},
            "repo": {"name": f"{org}/api"},
            "payload": {"size": 3},
            "created_at": "2026-10-18T12:00:00Z",
        },
        {
            "id": "102",
            "type": "PullRequestEvent",
            "actor": {"login": "octo"},
            "repo": {"name": f"{org}/web"},
            "payload": {"action": "opened", "number": 42},
            "created_at": "2026-10-19T08:30:00Z",
        },
        {
            "id": "103",
            "type": "WatchEvent",
            "actor": {"login": "fan"},
            "repo": {"name": f"{org}/docs"},
            "payload": {"action": "started"},
            "created_at": "2026-10-17T09:00:00Z",
        },
    ]


@app.get("/users/{org}/repos")
async def user_repos(org: str):
    return [
        {"name": "api", "html_url": f"https://github.com/{org}/api", "description": "Public API",
         "language": "Python", "stargazers_count": 12, "fork": False, "pushed_at": "2026-10-18T12:00:00Z"},
        {"name": "web", "html_url": f"https://github.com/{org}/web", "description": "Dashboard page",
         "language": "TypeScript", "stargazers_count": 5, "fork": False, "pushed_at": "2026-10-19T08:30:00Z"},
        {"name": "docs", "html_url": f"https://github.com/{org}/docs", "description": None,
         "language": None, "stargazers_count": 0, "fork": False, "pushed_at": "2026-09-01T00:00:00Z"},
        {"name": "upstream-lib", "html_url": f"https://github.com/{org}/upstream-lib", "description": "Fork",
         "language": "Go", "stargazers_count": 1, "fork": True, "pushed_at": "2025-01-01T00:00:00Z"},
    ]


@app.get("/repos/{org}/{repo}/actions/runs")
async def workflow_runs(org: str, repo: str):
    if repo == "no-actions":
        return JSONResponse(status_code=404, content={"message": "Not Found"})
    conclusion = "failure" if repo == "broken" else "success"
    return {
        "total_count": 1,
        "workflow_runs": [
            {
                "id": 1,
                "status": "completed",
                "conclusion": conclusion,
                "updated_at": "2026-10-19T07:00:00Z",
                "html_url": f"https://github.com/{org}/{repo}/actions/runs/1",
            }
        ],
    }


@app.get("/repos/{org}/{repo}/stats/commit_activity")
async def commit_activity(org: str, repo: str):
    if repo == "computing":
        # GitHub's "stats are being generated" answer
        return JSONResponse(status_code=202, content={})
    week = populated_week_start()
    return [
        {"days": [0] * 7, "total": 0, "week": int((week - timedelta(days=7)).timestamp())},
        {"days": WEEK_DAYS, "total": sum(WEEK_DAYS), "week": int(week.timestamp())},
    ]


@app.get("/rate_limit")
async def rate_limit():
    return {"resources": {"core": {"limit": 60, "remaining": 57, "reset": 1792400000, "used": 3}}}


# ── algod ────────────────────────────────────────────────────────────────────


@app.get("/v2/accounts/{address}")
async def account(address: str):
    return {
        "address": address,
        "amount": MICRO_ALGO_AMOUNT,
        "min-balance": 300_000,
        "assets": [{"asset-id": 31566704, "amount": 5}, {"asset-id": 312769, "amount": 0}],
        "created-apps": [{"id": 1001}],
        "status": "Offline",
    }


@app.get("/v2/status")
async def node_status():
    return {
        "last-round": 48_000_000,
        "time-since-last-round": 3_200_000_000,
        "catchup-time": 0,
        "last-version": "https://github.com/algorandfoundation/specs/tree/236dcc18c9c507d794813ab768e467ea42d1b4d9",
        "next-version": "https://github.com/algorandfoundation/specs/tree/236dcc18c9c507d794813ab768e467ea42d1b4d9",
        "next-version-round": 48_000_001,
        "next-version-supported": True,
    }


# ── npm registry + published site ────────────────────────────────────────────


@app.get("/-/ping")
async def registry_ping():
    return {}


@app.get("/", response_class=HTMLResponse)
async def site_root():
    return "<!doctype html><title>Status Dashboard</title>"
