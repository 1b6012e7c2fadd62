import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from statusboard.config import Settings
from statusboard.schemas.records import PackageEntry
from statusboard.services.sources import build_adapters
from tests.mocks.fake_upstreams import ACCOUNT, ORG
from tests.mocks.fake_upstreams import app as fake_upstreams_app

UPSTREAM = "http://fake-upstream"


@pytest.fixture
def test_settings():
    """Settings pointing every source at the in-process fake upstream."""
    return Settings(
        github_api_url=UPSTREAM,
        github_org=ORG,
        github_ci_repos="api,web,docs",
        github_commit_repos="api",
        algod_api_url=UPSTREAM,
        algod_account_address=ACCOUNT,
        npm_registry_url=UPSTREAM,
        site_origin=UPSTREAM,
        refresh_interval_seconds=0,
        refresh_on_startup=False,
    )


@pytest.fixture
def catalog():
    return [
        PackageEntry(name="@acme/core", version="1.0.0", tests_passing=True, test_count=10),
        PackageEntry(name="@acme/cli", version="0.2.0", tests_passing=True, test_count=4),
    ]


@pytest_asyncio.fixture
async def upstream_client():
    """httpx client routed to the fake upstream app via ASGITransport."""
    transport = ASGITransport(app=fake_upstreams_app)
    async with httpx.AsyncClient(transport=transport, base_url=UPSTREAM) as client:
        yield client


@pytest_asyncio.fixture
async def dashboard_app(upstream_client, test_settings, catalog):
    """FastAPI app with the refresh engine wired to the fake upstreams (timer off)."""
    from statusboard.main import app, init_dashboard

    adapters = build_adapters(test_settings, upstream_client)
    scheduler = init_dashboard(app, adapters, catalog, activity_limit=10)

    yield app

    await scheduler.aclose()


@pytest_asyncio.fixture
async def client(dashboard_app):
    transport = ASGITransport(app=dashboard_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
