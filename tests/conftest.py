"""
Shared fixtures: an isolated SQLite database per test and an HTTPS test
client running the full application lifespan.
"""

from pathlib import Path

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from config.settings import Settings
from database.session import Database
from main import create_app


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'accounts.db'}",
        session_secret="test-session-secret",
        bcrypt_rounds=4,
        cors_origins=["https://frontend.test"],
    )


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings)
    await db.create_schema()
    yield db
    await db.dispose()


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client for testing with lifespan support."""
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="https://test") as ac:
            yield ac


async def register(client, username="alice", email="a@x.com", password="pw1"):
    return await client.post(
        "/register",
        json={"username": username, "email": email, "password": password},
    )


async def login(client, username="alice", password="pw1"):
    return await client.post("/login", json={"username": username, "password": password})
