from pathlib import Path
from typing import Callable

import pytest
from inventory.adapter import unit_of_work
from inventory.adapter.orm import mapper_registry, start_mappers
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import clear_mappers, sessionmaker


# Database Engine
@pytest.fixture
async def database_engine(tmp_path: Path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}",
        isolation_level="SERIALIZABLE",
    )
    async with engine.begin() as conn:
        await conn.run_sync(mapper_registry.metadata.create_all)
    yield engine
    await engine.dispose()


# ORM Mapping
@pytest.fixture
def orm_mapping():
    start_mappers()
    yield
    clear_mappers()


# Database Session
AsyncSessionFactory = Callable[[], AsyncSession]


@pytest.fixture
def database_session_factory(database_engine: AsyncEngine) -> AsyncSessionFactory:
    return sessionmaker(  # type: ignore
        bind=database_engine, class_=AsyncSession, expire_on_commit=False  # type: ignore
    )


@pytest.fixture
async def database_session(database_session_factory: AsyncSessionFactory):
    async with database_session_factory() as session:
        yield session


# UnitOfWork
@pytest.fixture
def uow_class(database_session_factory: AsyncSessionFactory):
    class UOW(unit_of_work.UnitOfWork):
        SESSION_FACTORY = database_session_factory

    return UOW
