from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from serenity.core.config import get_settings


_MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _require_database_url() -> str:
    settings = get_settings()
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is not configured.")
    return settings.database_url


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _engine, _session_factory
    if _engine is None or _session_factory is None:
        _engine = create_async_engine(_require_database_url())
        _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    session = get_session_factory()()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


def alembic_config() -> Config:
    """Alembic configuration pointing at the migration scripts shipped in the package."""
    if not (_MIGRATIONS_DIR / "env.py").exists():
        raise RuntimeError(f"Alembic scripts not found at {_MIGRATIONS_DIR}")

    config = Config()
    config.set_main_option("script_location", str(_MIGRATIONS_DIR))
    config.set_main_option("sqlalchemy.url", _require_database_url().replace("%", "%%"))
    config.attributes["configure_logger"] = False
    return config


async def init_database(revision: str = "head") -> None:
    """Create the engine and upgrade the schema to ``revision``."""
    get_session_factory()
    config = alembic_config()
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, command.upgrade, config, revision)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
