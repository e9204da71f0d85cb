"""Test fixtures for the booking core backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from app.core.config import get_settings
from app.core.security import get_password_hash
from app.db.base import Base
from app.db.session import dispose_engine, get_sessionmaker
from app.main import app
from app.models import Property, SubscriptionTier, User, UserRole

PASSWORD = "Passw0rd!"


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def marketplace(
    reset_database: AsyncIterator[None], db_url: str
) -> dict[str, object]:
    """Seed users and properties; return their ids and credentials."""
    sessionmaker = get_sessionmaker(db_url)
    hashed = get_password_hash(PASSWORD)

    async with sessionmaker() as session:
        users = {
            "landlord": User(
                email="landlord@example.com",
                hashed_password=hashed,
                full_name="Lee Landlord",
                role=UserRole.LANDLORD,
            ),
            "other_landlord": User(
                email="other.landlord@example.com",
                hashed_password=hashed,
                full_name="Olive Owner",
                role=UserRole.LANDLORD,
            ),
            "free_student": User(
                email="free.student@example.com",
                hashed_password=hashed,
                full_name="Frankie Free",
                role=UserRole.STUDENT,
                subscription_tier=SubscriptionTier.FREE,
            ),
            "premium_student": User(
                email="premium.student@example.com",
                hashed_password=hashed,
                full_name="Pat Premium",
                role=UserRole.STUDENT,
                subscription_tier=SubscriptionTier.PREMIUM,
            ),
            "admin": User(
                email="admin@example.com",
                hashed_password=hashed,
                full_name="Ada Admin",
                role=UserRole.ADMIN,
            ),
        }
        session.add_all(users.values())
        await session.flush()

        landlord_id = users["landlord"].id
        properties = {
            "downpayment": Property(
                landlord_id=landlord_id,
                title="Studio near campus",
                rent_amount=Decimal("10000.00"),
                enable_downpayment=True,
                downpayment_amount=Decimal("3000.00"),
            ),
            "full_only": Property(
                landlord_id=landlord_id,
                title="Shared flat",
                rent_amount=Decimal("8000.00"),
            ),
            "extra_one": Property(
                landlord_id=landlord_id,
                title="Bedspace A",
                rent_amount=Decimal("3500.00"),
            ),
            "extra_two": Property(
                landlord_id=landlord_id,
                title="Bedspace B",
                rent_amount=Decimal("3500.00"),
            ),
            "no_reservations": Property(
                landlord_id=landlord_id,
                title="Walk-in only room",
                rent_amount=Decimal("6000.00"),
                allow_reservations=False,
            ),
            "unavailable": Property(
                landlord_id=landlord_id,
                title="Occupied unit",
                rent_amount=Decimal("7000.00"),
                is_available=False,
            ),
            "misconfigured": Property(
                landlord_id=landlord_id,
                title="Typo in downpayment",
                rent_amount=Decimal("5000.00"),
                enable_downpayment=True,
                downpayment_amount=Decimal("5000.00"),
            ),
        }
        session.add_all(properties.values())
        await session.commit()

        context: dict[str, object] = {"password": PASSWORD}
        for key, user in users.items():
            context[f"{key}_id"] = user.id
            context[f"{key}_email"] = user.email
        for key, property in properties.items():
            context[f"property_{key}_id"] = property.id
    return context


@pytest_asyncio.fixture()
async def app_context(
    marketplace: dict[str, object],
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client alongside the seeded marketplace data."""
    context = dict(marketplace)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
