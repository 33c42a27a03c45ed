"""Test fixtures and configuration."""

from __future__ import annotations

import datetime
from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from portal.database import get_session
from portal.dependencies import get_auth_client
from portal.main import app
from portal.models.orm import Base
from portal.services.errors import AuthError
from portal.services.identity import AuthUser, IdentityResolver
from portal.services.notifications import Notifier

test_engine = create_async_engine("sqlite+aiosqlite://", echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

USER_ID = "user-1"
TOKEN = "token-1"
OTHER_USER_ID = "user-2"
OTHER_TOKEN = "token-2"
EXPIRED_TOKEN = "expired"


class FakeAuthClient:
    """Maps access tokens to users; ``EXPIRED_TOKEN`` fails the lookup."""

    def __init__(self) -> None:
        self.users = {TOKEN: USER_ID, OTHER_TOKEN: OTHER_USER_ID}
        self.calls = 0

    async def get_user(self, access_token: str) -> AuthUser | None:
        self.calls += 1
        if access_token == EXPIRED_TOKEN:
            raise AuthError("Auth error: JWT expired")
        user_id = self.users.get(access_token)
        return AuthUser(id=user_id) if user_id else None


class FakeClock:
    """Deterministic clock; every call moves time forward one minute."""

    def __init__(self, start: datetime.datetime) -> None:
        self.current = start

    def __call__(self) -> datetime.datetime:
        value = self.current
        self.current += datetime.timedelta(minutes=1)
        return value


fake_auth = FakeAuthClient()


async def override_get_session() -> AsyncIterator[AsyncSession]:
    async with test_session_factory() as session:
        yield session


app.dependency_overrides[get_session] = override_get_session
app.dependency_overrides[get_auth_client] = lambda: fake_auth


@pytest.fixture(autouse=True)
async def setup_database() -> AsyncIterator[None]:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def session() -> AsyncIterator[AsyncSession]:
    async with test_session_factory() as s:
        yield s


@pytest.fixture
def auth_client() -> FakeAuthClient:
    return FakeAuthClient()


@pytest.fixture
def resolver(auth_client: FakeAuthClient) -> IdentityResolver:
    return IdentityResolver(auth_client, TOKEN)


@pytest.fixture
def anonymous(auth_client: FakeAuthClient) -> IdentityResolver:
    return IdentityResolver(auth_client, None)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def clock() -> FakeClock:
    # Naive: SQLite hands back naive datetimes
    return FakeClock(datetime.datetime(2024, 1, 15, 9, 0, 0))


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {TOKEN}"}
