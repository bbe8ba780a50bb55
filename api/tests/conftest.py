"""
Configuración de fixtures para pytest.
"""
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from pvz_registry.infrastructure.database import models  # noqa: F401
from pvz_registry.infrastructure.database.session import Base

from tests.fakes import FakeSheetsReader


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Factory de sesiones sobre una base SQLite en archivo temporal.

    Se usa archivo (no :memory:) porque el motor de sync abre varias
    sesiones por corrida y cada conexión a :memory: vería una base distinta.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_reader() -> FakeSheetsReader:
    return FakeSheetsReader()
