import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_JSON", "false")

from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.category import Category
from app.models.user import User


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(session_factory):
    """alice, bob and carol share budgets in the tests; dave never joins one."""
    async with session_factory() as session:
        alice = User(email="alice@example.com", name="Alice")
        bob = User(email="bob@example.com", name="Bob")
        carol = User(email="carol@example.com", name="Carol")
        dave = User(email="dave@example.com", name="Dave")
        session.add_all([alice, bob, carol, dave])
        await session.flush()

        food = Category(user_id=alice.id, name="Food")
        travel = Category(user_id=alice.id, name="Travel")
        bob_food = Category(user_id=bob.id, name="Food")
        session.add_all([food, travel, bob_food])
        await session.commit()

        return SimpleNamespace(
            alice=alice.id,
            bob=bob.id,
            carol=carol.id,
            dave=dave.id,
            food=food.id,
            travel=travel.id,
            bob_food=bob_food.id,
        )


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def make(user_id: int) -> dict:
        token = create_access_token({"sub": str(user_id)})
        return {"Authorization": f"Bearer {token}"}

    return make
