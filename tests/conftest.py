import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["FEE_SCHEDULER_ENABLED"] = "false"
os.environ["SMS_PROVIDER_URL"] = ""
os.environ["SMS_PROVIDER_API_KEY"] = ""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import schoolms.models  # noqa: F401  registers every table on Base.metadata
from schoolms.core.db import Base, get_db
from schoolms.core.security import hash_password
from schoolms.models.auth import User
from factories import ADMIN_PASSWORD, ADMIN_PHONE, headers_for
from main import app


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def admin(db):
    user = User(
        phone=ADMIN_PHONE,
        email="admin@test.school",
        full_name="Test Admin",
        hashed_password=hash_password(ADMIN_PASSWORD),
        is_super_admin=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def auth_headers(admin):
    return headers_for(admin)
