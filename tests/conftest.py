"""Shared fixtures: a fresh SQLite database and upload root per test."""
import os

# zentro.main builds a module-level app on import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from zentro.config import Settings
from zentro.main import create_app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "test-admin-password"

VILLA = {
    "title": "Test Villa",
    "type": "Villa",
    "status": "For Sale",
    "price": 1000000,
    "location_area": "X",
    "location_city": "Y",
    "bedrooms": 3,
    "bathrooms": 2,
    "size": 100,
    "description": "d",
}


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        environment="test",
        database_url_override=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret_key="test-signing-key",
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        upload_dir=str(tmp_path / "uploads"),
        rate_limit_enabled=False,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def app(settings):
    application = create_app(settings)
    # ASGITransport does not run the lifespan
    await application.state.db.create_all()
    application.state.storage.ensure_root()
    yield application
    await application.state.db.dispose()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def test_db(app):
    async with app.state.db.session() as session:
        yield session


@pytest_asyncio.fixture
async def admin_token(client) -> str:
    response = await client.post(
        "/api/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def auth_headers(admin_token) -> dict:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest_asyncio.fixture
async def create_property(client, auth_headers):
    """Factory creating a property through the admin API and returning its id."""
    async def _create(**overrides) -> int:
        payload = dict(VILLA)
        payload.update(overrides)
        response = await client.post("/api/admin/properties", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["property"]["id"]
    return _create
