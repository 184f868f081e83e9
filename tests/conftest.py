import os

# Configuración de entorno ANTES de importar la app: SQLite async en lugar de Postgres
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["CHECKIN_TIMEZONE"] = "Asia/Kolkata"
os.environ["DEBUG_MODE"] = "False"

from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.db.base import Base
from app.models.gym import Gym
from app.models.member import Member


@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    Base SQLite en archivo (una por test): permite varias sesiones concurrentes
    y aplica las constraints únicas igual que Postgres.
    """
    db_path = tmp_path / "checkin_test.db"
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()

@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

@pytest.fixture
def job_session_factory(session_factory):
    """Equivalente a get_async_db_for_jobs pero contra la base de test."""
    @asynccontextmanager
    async def factory():
        async with session_factory() as session:
            yield session
    return factory

@pytest.fixture
def no_redis():
    """Equivalente a get_redis_for_jobs cuando Redis no está disponible."""
    @asynccontextmanager
    async def factory():
        yield None
    return factory

@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session

@pytest_asyncio.fixture
async def gym(db):
    gym = Gym(name="Iron Paradise", slug="iron-paradise", city="Pune")
    db.add(gym)
    await db.commit()
    await db.refresh(gym)
    return gym

@pytest_asyncio.fixture
async def other_gym(db):
    gym = Gym(name="Muscle Factory", slug="muscle-factory", city="Mumbai")
    db.add(gym)
    await db.commit()
    await db.refresh(gym)
    return gym

@pytest_asyncio.fixture
async def member(db, gym):
    member = Member(gym_id=gym.id, user_id=501, name="Ravi Kumar Sharma", phone="9876543210")
    db.add(member)
    await db.commit()
    await db.refresh(member)
    return member

@pytest_asyncio.fixture
async def inactive_member(db, gym):
    member = Member(gym_id=gym.id, user_id=502, name="Anita Desai", phone="9876500000", is_active=False)
    db.add(member)
    await db.commit()
    await db.refresh(member)
    return member
