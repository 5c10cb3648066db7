import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-suite-only")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from decimal import Decimal
from typing import AsyncGenerator, Callable

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import bepawa.domain  # noqa: F401  registers every table
from bepawa.api.deps import get_redis
from bepawa.core.permissions import UserRole
from bepawa.core.security import create_access_token, get_password_hash
from bepawa.domain.products.models import Product
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import Base, get_db
from bepawa.main import app

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="function")
async def engine():
    """Fresh in-memory database for each test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def redis_client():
    client = fakeredis.FakeAsyncRedis()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture(scope="function")
async def client(db: AsyncSession, redis_client) -> AsyncGenerator[AsyncClient, None]:
    """Test client sharing the test session and fake Redis."""

    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis_client

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_profile(db: AsyncSession) -> Callable:
    """Factory creating a profile with the given role."""
    counter = {"n": 0}

    async def _make(role: UserRole = UserRole.INDIVIDUAL, approved: bool = True, **fields) -> Profile:
        counter["n"] += 1
        profile = Profile(
            email=fields.pop("email", f"{role.value}{counter['n']}@bepawa.co.tz"),
            password_hash=get_password_hash(TEST_PASSWORD),
            full_name=fields.pop("full_name", f"{role.value.title()} {counter['n']}"),
            role=role.value,
            is_approved=approved,
            **fields,
        )
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        return profile

    return _make


@pytest.fixture
def make_product(db: AsyncSession) -> Callable:
    async def _make(owner: Profile, **fields) -> Product:
        role = UserRole.parse(owner.role)
        defaults = {
            "user_id": owner.id,
            "name": "Paracetamol 500mg",
            "category": "analgesics",
            "stock": 50,
            "min_stock_level": 5,
            "sell_price": Decimal("1000"),
            "buy_price": Decimal("700"),
            "status": "in-stock",
            "is_public_product": role is UserRole.RETAIL,
            "is_retail_product": role is UserRole.RETAIL,
            "is_wholesale_product": role is UserRole.WHOLESALE,
            "pharmacy_id": owner.id if role is UserRole.RETAIL else None,
            "wholesaler_id": owner.id if role is UserRole.WHOLESALE else None,
        }
        defaults.update(fields)
        product = Product(**defaults)
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    return _make


def auth_headers(profile: Profile) -> dict:
    return {"Authorization": f"Bearer {create_access_token(profile.id, {'role': profile.role})}"}


@pytest.fixture
def headers_for() -> Callable:
    return auth_headers


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "auth: mark test as authentication related")
    config.addinivalue_line("markers", "inventory: mark test as inventory related")
    config.addinivalue_line("markers", "orders: mark test as cart and order related")
    config.addinivalue_line("markers", "audit: mark test as audit logging related")
    config.addinivalue_line("markers", "credit: mark test as trade credit related")
