"""Shared test fixtures.

Uses in-memory SQLite for tests (fast, no DB required).
"""

from __future__ import annotations

import os

# Cheap hashes for tests; must be set before tilehub.core.config is imported
os.environ.setdefault("TILEHUB_BCRYPT_ROUNDS", "4")

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from uuid_utils.compat import uuid7  # noqa: E402

from tilehub.core.auth import AuthService, generate_api_key  # noqa: E402
from tilehub.core.database import Base, get_db_session  # noqa: E402
from tilehub.core.enums import NotificationCategory  # noqa: E402
from tilehub.core.models import Notification, Organization, User  # noqa: E402
from tilehub.core.passwords import hash_password  # noqa: E402

# In-memory async SQLite for unit tests
_TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

SAMPLE_PASSWORD = "foobarbaz"

ORGANIZATION_BASEMAPS = {
    "carto": {
        "positron": {"name": "Positron", "className": "positron"},
        "voyager": {"name": "Voyager", "className": "voyager", "default": True},
    }
}


@pytest.fixture
async def test_engine():
    """Create a test database engine with all tables."""
    engine = create_async_engine(_TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session(test_engine):
    """Create a test database session."""
    session_factory = async_sessionmaker(test_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def sample_organization(test_session: AsyncSession) -> Organization:
    """Create a sample organization with its own basemaps."""
    organization = Organization(
        id=uuid7(),
        name="Mapping Team",
        slug="mapping-team",
        basemaps=ORGANIZATION_BASEMAPS,
    )
    test_session.add(organization)
    await test_session.flush()
    return organization


@pytest.fixture
async def sample_user(
    test_session: AsyncSession,
    sample_organization: Organization,
) -> User:
    """Create a sample user with a known password and a filled-in profile."""
    user = User(
        id=uuid7(),
        organization=sample_organization,
        username="alice",
        email="alice@maps.io",
        crypted_password=hash_password(SAMPLE_PASSWORD),
        api_key=generate_api_key(),
        name="Alice",
        last_name="Liddell",
        website="https://alice.maps.io",
        description="Cartographer",
        location="Oxford",
        twitter_username="alice_maps",
        disqus_shortname="alicemaps",
        available_for_hire=True,
    )
    test_session.add(user)
    await test_session.flush()
    await test_session.refresh(user)
    return user


@pytest.fixture
async def other_user(test_session: AsyncSession) -> User:
    """A second user outside any organization."""
    user = User(
        id=uuid7(),
        organization=None,
        username="bob",
        email="bob@maps.io",
        crypted_password=hash_password("bobpassword"),
        api_key=generate_api_key(),
    )
    test_session.add(user)
    await test_session.flush()
    return user


@pytest.fixture
async def sample_notifications(
    test_session: AsyncSession,
    sample_user: User,
) -> list[Notification]:
    """Three unread dashboard notifications, one read one, and one of another category."""
    now = datetime(2024, 5, 1, 12, 0, 0)
    notifications = [
        Notification(
            id=uuid7(),
            user_id=sample_user.id,
            category=NotificationCategory.DASHBOARD,
            body=f"Dashboard notice {i}",
            created_at=now - timedelta(hours=i),
        )
        for i in range(3)
    ]
    notifications.append(
        Notification(
            id=uuid7(),
            user_id=sample_user.id,
            category=NotificationCategory.DASHBOARD,
            body="Already read",
            created_at=now,
            read_at=now,
        )
    )
    notifications.append(
        Notification(
            id=uuid7(),
            user_id=sample_user.id,
            category=NotificationCategory.BUILDER,
            body="Builder tip",
            created_at=now,
        )
    )
    test_session.add_all(notifications)
    await test_session.flush()
    return notifications


@pytest.fixture
def session_token(sample_user: User) -> str:
    """Create a session token for the sample user."""
    return AuthService().create_session_token(sample_user)


@pytest.fixture
def app(test_session: AsyncSession):
    """The FastAPI app with the DB session dependency pointed at the test session."""
    from tilehub.api.main import create_app

    app = create_app()

    async def _override_session():
        yield test_session

    app.dependency_overrides[get_db_session] = _override_session
    return app


@pytest.fixture
async def anonymous_client(app) -> AsyncClient:
    """An httpx AsyncClient with no credentials."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Content-Type": "application/json"},
    ) as client:
        yield client


@pytest.fixture
async def async_client(app, session_token: str) -> AsyncClient:
    """An httpx AsyncClient authenticated with the sample user's session token."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={
            "Authorization": f"Bearer {session_token}",
            "Content-Type": "application/json",
        },
    ) as client:
        yield client
