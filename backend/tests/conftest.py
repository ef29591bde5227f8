import os

os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""

import uuid
from decimal import Decimal

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401  (registers tables)
from app.context import RequestContext
from app.database import Base, get_db
from app.main import app as fastapi_app
from app.models.property import Property
from app.models.user import User, UserRole


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def _get_test_db():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _get_test_db
    transport = httpx.ASGITransport(app=fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()


async def _make_user(db, email, role=UserRole.GUEST):
    user = User(
        id=uuid.uuid4(),
        email=email,
        first_name=email.split("@")[0].title(),
        last_name="Tester",
        role=role.value,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def guest(db):
    return await _make_user(db, "guest@example.com")


@pytest.fixture
async def other_guest(db):
    return await _make_user(db, "other@example.com")


@pytest.fixture
async def admin(db):
    return await _make_user(db, "admin@glampspot.com", UserRole.ADMIN)


@pytest.fixture
async def host(db):
    return await _make_user(db, "host@glampspot.com", UserRole.HOST)


@pytest.fixture
async def dome(db):
    prop = Property(
        name="Starlight Dome",
        slug="starlight-dome",
        max_guests=4,
        min_nights=1,
        base_price=Decimal("199.00"),
        cleaning_fee=Decimal("50.00"),
        service_fee_pct=Decimal("12.00"),
        tax_rate_pct=Decimal("8.00"),
    )
    db.add(prop)
    await db.commit()
    await db.refresh(prop)
    return prop


@pytest.fixture
def guest_ctx(db, guest):
    return RequestContext(db=db, user=guest)


@pytest.fixture
def admin_ctx(db, admin):
    return RequestContext(db=db, user=admin)
