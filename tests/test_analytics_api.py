"""Analytics tracking and report tests."""
from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from zentro.db.models import AnalyticsEvent
from zentro.services.analytics_service import classify_referrer


async def track(client: AsyncClient, headers=None, **payload):
    return await client.post("/api/analytics/track", json=payload, headers=headers)


@pytest.mark.parametrize("referrer,expected", [
    (None, "Direct"),
    ("", "Direct"),
    ("https://www.google.com/search?q=villa", "Google"),
    ("https://m.facebook.com/", "Facebook"),
    ("https://www.linkedin.com/feed", "LinkedIn"),
    ("https://example.org/blog", "Other"),
])
def test_classify_referrer(referrer, expected):
    assert classify_referrer(referrer) == expected


@pytest.mark.asyncio
async def test_track_is_public_and_records_client(client: AsyncClient, test_db):
    response = await track(
        client,
        headers={"User-Agent": "pytest-agent", "X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
        event_type="page_view",
        page_url="/about",
        session_id="s1",
    )
    assert response.status_code == 201
    event_id = response.json()["event"]["id"]

    event = await test_db.get(AnalyticsEvent, event_id)
    assert event.ip_address == "203.0.113.9"
    assert event.user_agent == "pytest-agent"
    assert event.event_data == {}


@pytest.mark.asyncio
async def test_track_requires_event_type(client: AsyncClient):
    response = await track(client, page_url="/")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_track_with_unknown_property_stores_no_reference(client: AsyncClient, test_db):
    response = await track(client, event_type="property_view", property_id=987654)
    assert response.status_code == 201

    event = await test_db.get(AnalyticsEvent, response.json()["event"]["id"])
    assert event.property_id is None


@pytest.mark.asyncio
async def test_reports_require_admin(client: AsyncClient):
    for path in ("/api/analytics/overview", "/api/analytics/traffic-sources",
                 "/api/analytics/devices", "/api/analytics/searches"):
        assert (await client.get(path)).status_code == 401
    assert (await client.delete("/api/analytics/cleanup")).status_code == 401


@pytest.mark.asyncio
async def test_overview(client: AsyncClient, auth_headers, create_property):
    property_id = await create_property()
    await track(client, event_type="page_view", page_url="/", session_id="a", device_type="mobile")
    await track(client, event_type="page_view", page_url="/", session_id="b", device_type="desktop")
    await track(client, event_type="property_view", property_id=property_id, session_id="a", duration=30)
    await track(client, event_type="search", session_id="b", duration=10)

    response = await client.get("/api/analytics/overview", params={"period": "7"}, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()

    overview = data["overview"]
    assert overview["total_events"] == 4
    assert overview["unique_sessions"] == 2
    assert overview["page_views"] == 2
    assert overview["property_views"] == 1
    assert overview["searches"] == 1
    assert overview["mobile_users"] == 1
    assert overview["avg_session_duration"] == 20.0

    assert data["top_pages"][0]["page_url"] == "/"
    assert data["top_pages"][0]["views"] == 2
    assert data["top_properties"][0]["title"] == "Test Villa"
    assert data["period_days"] == 7
    assert len(data["daily_stats"]) == 1


@pytest.mark.asyncio
async def test_invalid_period_rejected(client: AsyncClient, auth_headers):
    response = await client.get("/api/analytics/overview", params={"period": "week"}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_property_report(client: AsyncClient, auth_headers, create_property):
    property_id = await create_property()
    google = {"Referer": "https://www.google.com/"}
    await track(client, headers=google, event_type="property_view", property_id=property_id, session_id="x")
    await track(client, event_type="phone_click", property_id=property_id, session_id="x")

    data = (await client.get(f"/api/analytics/properties/{property_id}", headers=auth_headers)).json()
    assert data["property"]["title"] == "Test Villa"
    assert data["analytics"]["property_views"] == 1
    assert data["analytics"]["phone_clicks"] == 1
    assert {s["source"]: s["visits"] for s in data["traffic_sources"]} == {"Google": 1, "Direct": 1}

    missing = await client.get("/api/analytics/properties/999999", headers=auth_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_traffic_sources_and_devices(client: AsyncClient, auth_headers):
    await track(client, headers={"Referer": "https://facebook.com/x"}, event_type="page_view", device_type="mobile")
    await track(client, headers={"Referer": "https://facebook.com/y"}, event_type="page_view", device_type="mobile")
    await track(client, event_type="page_view", browser="Firefox")

    sources = (await client.get("/api/analytics/traffic-sources", headers=auth_headers)).json()
    assert [(s["source"], s["visits"]) for s in sources["traffic_sources"]] == [("Facebook", 2), ("Direct", 1)]

    devices = (await client.get("/api/analytics/devices", headers=auth_headers)).json()
    by_device = {d["device_type"]: d["sessions"] for d in devices["devices"]}
    assert by_device == {"mobile": 2, "Unknown": 1}
    assert {b["browser"] for b in devices["browsers"]} == {"Firefox", "Unknown"}


@pytest.mark.asyncio
async def test_search_report(client: AsyncClient, auth_headers):
    await track(client, event_type="search", session_id="a", event_data={"search_term": "villa", "results_count": 3})
    await track(client, event_type="search", session_id="b", event_data={"search_term": "villa", "results_count": 3})
    await track(client, event_type="search", session_id="a", event_data={"search_term": "castle", "results_count": 0})
    await track(client, event_type="search", event_data={})

    data = (await client.get("/api/analytics/searches", headers=auth_headers)).json()
    top = data["popular_searches"][0]
    assert top["search_term"] == "villa"
    assert top["search_count"] == 2
    assert top["unique_searches"] == 2
    assert data["no_results_searches"] == [{"search_term": "castle", "search_count": 1}]


@pytest.mark.asyncio
async def test_cleanup_removes_only_old_events(client: AsyncClient, auth_headers, test_db):
    await track(client, event_type="page_view")
    test_db.add(AnalyticsEvent(event_type="page_view", created_at=datetime.utcnow() - timedelta(days=400)))
    await test_db.commit()

    response = await client.delete("/api/analytics/cleanup", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {
        "message": "Analytics data cleaned up successfully",
        "deleted_records": 1,
        "kept_days": 365,
    }

    remaining = (await test_db.execute(select(AnalyticsEvent))).scalars().all()
    assert len(remaining) == 1


@pytest.mark.asyncio
async def test_search_report_ignores_non_string_terms(client: AsyncClient, auth_headers):
    await track(client, event_type="search", event_data={"search_term": ["villa"], "results_count": 0})
    await track(client, event_type="search", event_data={"search_term": {"q": "villa"}})
    await track(client, event_type="search", event_data={"search_term": 42})
    await track(client, event_type="search", event_data={"search_term": "condo", "results_count": 0})

    response = await client.get("/api/analytics/searches", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert [s["search_term"] for s in data["popular_searches"]] == ["condo"]
    assert data["no_results_searches"] == [{"search_term": "condo", "search_count": 1}]
