"""Engine and session factory for SQL election storage.

``DATABASE_URL`` selects the store: unset keeps the in-memory stub, set
switches ``bootstrap.services`` to ``SqlElectionStore``. PostgreSQL URLs
without a driver get asyncpg; any other SQLAlchemy async URL is used as
given. ``SQLALCHEMY_ECHO`` turns on statement logging.
"""

from __future__ import annotations

import os

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from structlog import get_logger

from electorate.infrastructure.adapters.persistence.schema import metadata

logger = get_logger(__name__)

ASYNC_POSTGRES_DRIVER = "postgresql+asyncpg"
_BARE_POSTGRES_DRIVERS = frozenset({"postgres", "postgresql"})

_session_factory: async_sessionmaker[AsyncSession] | None = None
_engine: AsyncEngine | None = None


def database_configured() -> bool:
    return bool(os.environ.get("DATABASE_URL"))


def get_database_url() -> str:
    """Read DATABASE_URL, defaulting PostgreSQL URLs to the asyncpg driver.

    Raises:
        ValueError: If DATABASE_URL is not set.
    """
    raw = os.environ.get("DATABASE_URL")
    if not raw:
        raise ValueError(
            "DATABASE_URL environment variable not set. "
            "Required for SQL election storage."
        )
    if "://" not in raw:
        raw = f"{ASYNC_POSTGRES_DRIVER}://{raw}"

    url = make_url(raw)
    if url.drivername in _BARE_POSTGRES_DRIVERS:
        url = url.set(drivername=ASYNC_POSTGRES_DRIVER)
    return url.render_as_string(hide_password=False)


def _masked(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        url = get_database_url()
        logger.info("creating_database_engine", url=_masked(url))
        _engine = create_async_engine(
            url,
            echo=os.environ.get("SQLALCHEMY_ECHO", "").lower() in ("1", "true", "yes"),
            pool_pre_ping=True,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Singleton session factory over ``get_engine()``.

    Raises:
        ValueError: If DATABASE_URL is not configured.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("database_session_factory_created")
    return _session_factory


async def create_schema(engine: AsyncEngine | None = None) -> None:
    """Create any missing election tables."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("database_schema_ensured", tables=sorted(metadata.tables))


def reset_database_bootstrap() -> None:
    """Reset database singletons for testing."""
    global _session_factory, _engine
    _session_factory = None
    _engine = None


async def close_database_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
