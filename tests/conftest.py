import os

# Cheap hashes keep the suite fast; must be set before shiftr reads its settings
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_DEMO_DATA", "false")

import pytest
from typing import AsyncGenerator, Dict
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from shiftr.main import app
from shiftr.core.database import build_engine, get_async_session
from shiftr.db.init_db import create_tables
from shiftr.db.seeds.initial_data import create_initial_data
from shiftr.models.auth.user import User


@pytest.fixture
async def engine(tmp_path):
    """A fresh file-backed SQLite database per test"""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(test_engine)
    yield test_engine
    await test_engine.dispose()

@pytest.fixture
def session_maker(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

@pytest.fixture
async def demo_users(session_maker) -> Dict[str, User]:
    """adminuser/adminpass (admin) and testuser/testpass (user, with one shift starting now)"""
    async with session_maker() as session:
        return await create_initial_data(session)

@pytest.fixture
async def client(session_maker, demo_users) -> AsyncGenerator[AsyncClient, None]:
    """Create test client"""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

@pytest.fixture
def login(client: AsyncClient):
    """Log in and return bearer headers"""
    async def _login(name: str, password: str) -> dict:
        response = await client.post("/login", params={"user": name, "pass": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return _login

@pytest.fixture
async def admin_headers(login) -> dict:
    return await login("adminuser", "adminpass")

@pytest.fixture
async def user_headers(login) -> dict:
    return await login("testuser", "testpass")

@pytest.fixture
def create_user(client: AsyncClient, admin_headers: dict):
    """Create a user through the admin API and return its JSON"""
    async def _create(name: str, password: str = "secret", role: str = "user") -> dict:
        response = await client.post(
            "/api/v1/users",
            json={"name": name, "password": password, "role": role},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create
