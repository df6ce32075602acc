"""Admin authentication, dashboard and property management tests."""
import pytest
from httpx import AsyncClient

from tests.conftest import ADMIN_PASSWORD, ADMIN_USERNAME, VILLA


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient):
    response = await client.post(
        "/api/admin/login",
        json={"username": ADMIN_USERNAME.upper(), "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Login successful"
    assert data["token"]
    assert data["admin"]["username"] == ADMIN_USERNAME
    assert data["admin"]["role"] == "admin"


@pytest.mark.asyncio
async def test_login_accepts_email_field(client: AsyncClient):
    response = await client.post(
        "/api/admin/login",
        json={"email": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"username": ADMIN_USERNAME, "password": "wrong"},
    {"username": "intruder", "password": ADMIN_PASSWORD},
    {"username": ADMIN_USERNAME},
    {},
])
async def test_login_failure_is_uniform(client: AsyncClient, body):
    response = await client.post("/api/admin/login", json=body)
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid username or password"}


@pytest.mark.asyncio
async def test_verify(client: AsyncClient, auth_headers):
    response = await client.get("/api/admin/verify", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["valid"] is True

    missing = await client.get("/api/admin/verify")
    assert missing.status_code == 401
    assert missing.json() == {"error": "Access denied. No token provided."}


@pytest.mark.asyncio
async def test_sessions_recorded_and_deactivated_on_logout(client: AsyncClient, auth_headers):
    sessions = (await client.get("/api/admin/sessions", headers=auth_headers)).json()
    assert len(sessions) == 1
    assert sessions[0]["admin_username"] == ADMIN_USERNAME
    assert sessions[0]["active"] is True

    response = await client.post("/api/admin/logout", headers=auth_headers)
    assert response.status_code == 200

    # The token itself stays valid until it expires
    after = (await client.get("/api/admin/sessions", headers=auth_headers)).json()
    assert after == []


@pytest.mark.asyncio
async def test_dashboard_stats(client: AsyncClient, auth_headers, create_property):
    await create_property(price=100)
    await create_property(price=300, published=False)
    await client.post("/api/contacts", json={"name": "A", "email": "a@example.com", "message": "hi"})

    data = (await client.get("/api/admin/dashboard/stats", headers=auth_headers)).json()
    assert data["properties"]["total_properties"] == 2
    assert data["properties"]["unpublished_count"] == 1
    assert data["properties"]["average_price"] == 200
    assert data["contacts"]["total_inquiries"] == 1
    assert data["contacts"]["new_inquiries"] == 1
    assert len(data["recent"]["properties"]) == 2
    assert data["recent"]["inquiries"][0]["property_title"] is None


@pytest.mark.asyncio
async def test_admin_list_includes_unpublished(client: AsyncClient, auth_headers, create_property):
    await create_property(title="Live")
    await create_property(title="Draft", published=False)

    data = (await client.get("/api/admin/properties", headers=auth_headers)).json()
    assert {p["title"] for p in data["properties"]} == {"Live", "Draft"}

    drafts = (await client.get("/api/admin/properties", params={"published": "false"}, headers=auth_headers)).json()
    assert [p["title"] for p in drafts["properties"]] == ["Draft"]


@pytest.mark.asyncio
async def test_create_requires_admin(client: AsyncClient):
    response = await client.post("/api/admin/properties", json=VILLA)
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("field,value", [
    ("price", 0),
    ("type", "Castle"),
    ("status", "Sold"),
    ("title", ""),
])
async def test_create_validates_fields(client: AsyncClient, auth_headers, field, value):
    payload = dict(VILLA, **{field: value})
    response = await client.post("/api/admin/properties", json=payload, headers=auth_headers)
    assert response.status_code == 400
    assert field in response.json()["error"]


@pytest.mark.asyncio
async def test_create_accepts_plain_image_urls(client: AsyncClient, auth_headers):
    payload = dict(VILLA, images=["/uploads/1/a.jpg"])
    created = (await client.post("/api/admin/properties", json=payload, headers=auth_headers)).json()

    prop = (await client.get(f"/api/admin/properties/{created['property']['id']}", headers=auth_headers)).json()
    assert prop["images"][0]["url"] == "/uploads/1/a.jpg"


@pytest.mark.asyncio
async def test_update_changes_only_given_fields(client: AsyncClient, auth_headers, create_property):
    property_id = await create_property()

    response = await client.put(
        f"/api/admin/properties/{property_id}",
        json={"price": 1250000, "featured": True},
        headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Property updated successfully"

    prop = (await client.get(f"/api/admin/properties/{property_id}", headers=auth_headers)).json()
    assert prop["price"] == 1250000
    assert prop["featured"] is True
    assert prop["title"] == "Test Villa"
    assert prop["bedrooms"] == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("body,fragment", [
    ({}, "No update data provided"),
    ({"views_count": 1000}, "views_count"),
    ({"id": 5}, "id"),
    ({"colour": "blue"}, "colour"),
    ({"title": None}, "title"),
    ({"price": -5}, "price"),
])
async def test_update_rejects_bad_bodies(client: AsyncClient, auth_headers, create_property, body, fragment):
    property_id = await create_property()
    response = await client.put(f"/api/admin/properties/{property_id}", json=body, headers=auth_headers)
    assert response.status_code == 400
    assert fragment in response.json()["error"]


@pytest.mark.asyncio
async def test_update_slug_must_be_unique(client: AsyncClient, auth_headers, create_property):
    await create_property(title="First Home")
    second = await create_property(title="Second Home")

    response = await client.put(
        f"/api/admin/properties/{second}", json={"slug": "first-home"}, headers=auth_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_unknown_property(client: AsyncClient, auth_headers):
    response = await client.put("/api/admin/properties/999999", json={"price": 10}, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_property_without_uploads(client: AsyncClient, auth_headers, create_property):
    property_id = await create_property()

    response = await client.delete(f"/api/admin/properties/{property_id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {
        "message": "Property deleted successfully",
        "property": {"id": property_id, "title": "Test Villa"},
    }

    assert (await client.get(f"/api/properties/{property_id}")).status_code == 404
    assert (await client.delete(f"/api/admin/properties/{property_id}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_delete_property_survives_upload_cleanup_failure(
    client: AsyncClient, app, auth_headers, create_property, monkeypatch, caplog
):
    property_id = await create_property()

    def fail(pid):
        raise OSError("permission denied")

    monkeypatch.setattr(app.state.storage, "remove_property_dir", fail)
    response = await client.delete(f"/api/admin/properties/{property_id}", headers=auth_headers)

    assert response.status_code == 200
    assert (await client.get(f"/api/admin/properties/{property_id}", headers=auth_headers)).status_code == 404
    assert "Could not remove uploads" in caplog.text
