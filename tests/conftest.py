"""
Pytest fixtures for testing.

Provides:
- Role configs (fixed/defaults) shared across granter tests
- Mock role storage recording load/persist calls
- Async SQLite engine for the database store
- FastAPI test app + client guarded by require_permission
"""

import asyncio
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rolegrant.core.security import (
    PersistableRoleGranterAdapter,
    RoleConfig,
    SecurityChecker,
    get_current_roles,
    require_permission,
)
from rolegrant.models import Base


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============ Role Configs ============


FIXED_ROLES = {
    "role_permissions": {
        "ROLE_ANONYMOUS": ["auth:login"],
        "ROLE_USER": ["auth:logout"],
    },
}

DEFAULT_ROLES = {
    "role_hierarchy": {"ROLE_ADMIN": ["ROLE_USER"]},
    "role_permissions": {
        "ROLE_USER": ["entity:*:read", "entity:*:list"],
        "ROLE_ADMIN": ["entity:**"],
    },
    "role_labels": {"ROLE_USER": "User", "ROLE_ADMIN": "Administrator"},
}


@pytest.fixture
def fixed_roles() -> dict[str, Any]:
    return {k: {r: list(v) for r, v in m.items()} for k, m in FIXED_ROLES.items()}


@pytest.fixture
def default_roles() -> dict[str, Any]:
    return {
        "role_hierarchy": {r: list(v) for r, v in DEFAULT_ROLES["role_hierarchy"].items()},
        "role_permissions": {r: list(v) for r, v in DEFAULT_ROLES["role_permissions"].items()},
        "role_labels": dict(DEFAULT_ROLES["role_labels"]),
    }


# ============ Mock Implementations ============


class MockRoleStorage:
    """
    Mock load/persist callbacks.

    Records every call. `delay` makes callbacks yield to the event loop
    so concurrent callers overlap.
    """

    def __init__(
        self,
        data: dict[str, Any] | None = None,
        delay: float = 0,
        load_error: Exception | None = None,
        persist_error: Exception | None = None,
    ):
        self.data = data
        self.delay = delay
        self.load_error = load_error
        self.persist_error = persist_error
        self.load_calls = 0
        self.persisted: list[RoleConfig] = []

    async def load(self) -> dict[str, Any] | None:
        self.load_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.load_error:
            raise self.load_error
        return self.data

    async def persist(self, config: RoleConfig) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.persist_error:
            raise self.persist_error
        self.persisted.append(config)


class MockRedisClient:
    """Mock redis.asyncio client (string get/set/delete)."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.closed = False

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> bool:
        self.values[key] = value
        return True

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.values.pop(key, None) is not None)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def make_storage() -> type[MockRoleStorage]:
    """MockRoleStorage class, for tests that need custom data/failures."""
    return MockRoleStorage


@pytest.fixture
def storage() -> MockRoleStorage:
    return MockRoleStorage()


@pytest.fixture
def redis_client() -> MockRedisClient:
    return MockRedisClient()


# ============ Database ============


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ============ FastAPI ============


@pytest.fixture
def granter(fixed_roles, default_roles) -> PersistableRoleGranterAdapter:
    """Persistable granter with fixed + default roles and no storage."""
    return PersistableRoleGranterAdapter(fixed=fixed_roles, defaults=default_roles)


@pytest.fixture
def app(granter: PersistableRoleGranterAdapter) -> FastAPI:
    """Small app with permission-guarded routes."""
    app = FastAPI()
    app.state.security_checker = SecurityChecker(granter)

    @app.get("/books", dependencies=[Depends(require_permission("entity:books:read"))])
    async def list_books():
        return {"books": []}

    @app.delete("/books/{book_id}")
    async def delete_book(
        book_id: int,
        roles: list[str] = Depends(require_permission("entity:books:delete")),
    ):
        return {"deleted": book_id, "roles": roles}

    @app.post("/session")
    async def login(_: list[str] = Depends(require_permission(any_of=["auth:login", "auth:logout"]))):
        return {"ok": True}

    return app


@pytest.fixture
def as_roles(app: FastAPI):
    """Set the roles of the current actor for requests."""
    def set_roles(*roles: str) -> None:
        async def override() -> list[str]:
            return list(roles)
        app.dependency_overrides[get_current_roles] = override
    return set_roles


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Test client for the permission-guarded app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
