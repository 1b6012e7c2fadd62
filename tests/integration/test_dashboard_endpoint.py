"""Integration tests for the dashboard API against the fake upstreams."""

import asyncio
from datetime import timedelta

import pytest

from tests.mocks.fake_upstreams import WEEK_DAYS, populated_week_start


class TestRoot:
    async def test_root(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json() == {"service": "statusboard", "version": "0.1.0"}


class TestPanels:
    async def test_panels_loading_before_first_refresh(self, client):
        response = await client.get("/dashboard/panels")
        assert response.status_code == 200
        panels = response.json()["panels"]
        assert len(panels) == 9
        assert {p["status"] for p in panels} == {"loading"}

    async def test_refresh_and_wait_renders_every_panel(self, client):
        response = await client.post("/dashboard/refresh", params={"wait": "true"})
        assert response.status_code == 200
        body = response.json()
        assert body["completed"] is True
        assert len(body["triggered"]) == 9
        assert body["cycle"]["ticks"] == 1

        panels = {p["panel_id"]: p for p in (await client.get("/dashboard/panels")).json()["panels"]}
        assert all(p["status"] == "ok" for p in panels.values())

    async def test_stat_cards(self, client):
        await client.post("/dashboard/refresh", params={"wait": "true"})

        cards = (await client.get("/dashboard/panels/stats")).json()["data"]["cards"]
        assert cards["repos"]["value"] == "4"
        assert cards["repos"]["owned"] == 3
        assert cards["balance"]["value"] == "12.346"
        assert cards["packages"]["value"] == "2"
        assert cards["ci"]["value"] == "3/3 passing"

    async def test_wallet_panel(self, client):
        await client.post("/dashboard/refresh", params={"wait": "true"})

        data = (await client.get("/dashboard/panels/wallet")).json()["data"]
        assert data["balance"] == "12.345678 ALGO"
        assert data["assets"] == 2
        assert data["created_apps"] == 1

    async def test_network_panel(self, client):
        await client.post("/dashboard/refresh", params={"wait": "true"})

        data = (await client.get("/dashboard/panels/network")).json()["data"]
        assert "48" in data["round"]
        assert data["round_time"] == "3.2s"
        assert data["catchup"] == "Synced"

    async def test_contribution_graph(self, client):
        await client.post("/dashboard/refresh", params={"wait": "true"})

        data = (await client.get("/dashboard/panels/contributions")).json()["data"]
        cells = data["cells"]
        assert len(cells) >= 100
        by_date = {c["date"]: c for c in cells}
        start = populated_week_start().date()
        week = [by_date[(start + timedelta(days=i)).isoformat()] for i in range(7)]
        assert [c["count"] for c in week] == WEEK_DAYS
        assert [c["level"] for c in week] == [1, 2, 1, 0, 2, 1, 1]
        assert data["total"] == 13

    async def test_activity_feed(self, client):
        await client.post("/dashboard/refresh", params={"wait": "true"})

        events = (await client.get("/dashboard/panels/activity")).json()["data"]["events"]
        assert [e["id"] for e in events] == ["102", "101", "103"]
        assert events[0]["summary"] == "opened pull request #42"

    async def test_unknown_panel_is_404(self, client):
        response = await client.get("/dashboard/panels/nope")
        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "panel_not_found"
        assert error["details"]["panel_id"] == "nope"


class TestSources:
    async def test_pending_before_refresh(self, client):
        body = (await client.get("/dashboard/sources")).json()
        assert body["sources"] == {}
        assert len(body["pending"]) == 9

    async def test_latest_results_after_refresh(self, client):
        await client.post("/dashboard/refresh", params={"wait": "true"})

        body = (await client.get("/dashboard/sources")).json()
        assert body["pending"] == []
        assert body["sources"]["chain_network"]["status"] == "ok"
        assert body["sources"]["chain_network"]["data"]["last_round"] == 48_000_000

    async def test_failed_source_isolated(self, client, dashboard_app):
        scheduler = dashboard_app.state.scheduler
        account = next(a for a in scheduler._adapters.values() if a.source_id == "chain_account")
        account.address = ""

        await client.post("/dashboard/refresh", params={"wait": "true"})

        body = (await client.get("/dashboard/sources")).json()
        assert body["sources"]["chain_account"]["status"] == "failed"
        assert body["sources"]["chain_account"]["error"]["kind"] == "malformed_response"
        assert body["sources"]["repo_catalog"]["status"] == "ok"

        panels = {p["panel_id"]: p for p in (await client.get("/dashboard/panels")).json()["panels"]}
        assert panels["wallet"]["status"] == "loading"
        assert panels["repos"]["status"] == "ok"


class TestUptime:
    async def test_uptime_history(self, client):
        await client.post("/dashboard/refresh", params={"wait": "true"})
        await client.post("/dashboard/refresh", params={"wait": "true"})

        body = (await client.get("/dashboard/uptime")).json()
        assert body["capacity"] == 30
        services = {s["service_id"]: s for s in body["services"]}
        assert set(services) == {"ci_cd", "packages", "chain", "agent"}
        assert len(services["chain"]["samples"]) == 2
        assert services["chain"]["percentage"] == "100%"

    async def test_uptime_placeholder_when_empty(self, client):
        body = (await client.get("/dashboard/uptime")).json()
        assert all(s["percentage"] == "—" and s["samples"] == [] for s in body["services"])


class TestRefreshControl:
    async def test_refresh_state(self, client):
        body = (await client.get("/dashboard/refresh")).json()
        assert body["timer_armed"] is False
        assert body["interval_options"] == [30, 60, 300, 0]
        assert body["cycle"]["interval_seconds"] == 0

    @pytest.mark.parametrize("seconds", [30, 60, 300])
    async def test_set_interval_arms_timer(self, client, seconds):
        response = await client.put("/dashboard/refresh/interval", json={"seconds": seconds})
        assert response.status_code == 200
        body = response.json()
        assert body["timer_armed"] is True
        assert body["cycle"]["interval_seconds"] == seconds

    async def test_interval_off(self, client):
        await client.put("/dashboard/refresh/interval", json={"seconds": 60})
        response = await client.put("/dashboard/refresh/interval", json={"seconds": 0})
        body = response.json()
        assert body["timer_armed"] is False
        assert body["cycle"]["interval_seconds"] == 0

    async def test_interval_outside_options_rejected(self, client):
        response = await client.put("/dashboard/refresh/interval", json={"seconds": 45})
        assert response.status_code == 422

    async def test_refresh_without_wait_returns_immediately(self, client, dashboard_app):
        response = await client.post("/dashboard/refresh")
        assert response.status_code == 200
        assert response.json()["completed"] is False

        scheduler = dashboard_app.state.scheduler
        for _ in range(50):
            if len(scheduler.results()) == 9:
                break
            await asyncio.sleep(0.01)
        assert len(scheduler.results()) == 9
