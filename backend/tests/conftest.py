"""
Shared pytest fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without a
live Postgres instance.  UUID columns are stored as strings.

Environment overrides are applied before importing app modules so that
Settings() picks up the test configuration.
"""
import os

# Set test environment BEFORE importing any app module
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEV_SKIP_AUTH", "true")
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.models.base import Base
from app.models.sequence import SequenceDefinition
from app.models.user import User


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Provide a session that rolls back anything left uncommitted after each test."""
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create and return a persisted ADMIN user."""
    user = User(
        user_code="ADM001",
        name="Test Admin",
        email="admin@test.local",
        department="IT",
        position="Administrator",
        role="ADMIN",
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def staff_user(db_session: AsyncSession) -> User:
    """Create and return a persisted STAFF user."""
    user = User(
        user_code="USR001",
        name="Test Staff",
        email="staff@test.local",
        department="Sales",
        position="Sales Executive",
        role="STAFF",
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def so_sequence(db_session: AsyncSession) -> SequenceDefinition:
    """The sales-order sequence: {customer_code}/{project_code}/ starting at 1."""
    sequence = SequenceDefinition(
        sequence_code="SO",
        prefix_template="{customer_code}/{project_code}/",
        next_number=1,
        description="Sales order",
    )
    db_session.add(sequence)
    await db_session.commit()
    await db_session.refresh(sequence)
    return sequence


@pytest_asyncio.fixture
async def client(engine, db_session: AsyncSession, admin_user: User):
    """
    AsyncClient for the FastAPI app with:
    - DB dependency overridden to use the test session
    - DEV_SKIP_AUTH=true so requests are authenticated as admin_user
      by default (pass X-Dev-User-ID header with a different user_code
      to switch users).
    """
    from app.main import app
    from app.core.db import get_db

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
        headers={"X-Dev-User-ID": admin_user.user_code},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
