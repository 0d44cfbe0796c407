"""
FridgeMind API — Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, declarative Base and the
       per-request session dependency.
How:   `build_engine()` turns a URL into an AsyncEngine. PostgreSQL gets a
       sized connection pool; SQLite (test-suite, local experiments) gets
       SQLAlchemy's default pool and `PRAGMA foreign_keys=ON` on every
       connection so receipt items cascade like they do in PostgreSQL.

Transactions:
    One session per request, committed when the route returns and rolled
    back when it raises. ReceiptService commits the header on its own before
    inserting line items; the closing commit is then a no-op for that work.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from fridgemind.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **overrides: Any) -> AsyncEngine:
    """
    Create an AsyncEngine configured for `url`'s backend.

    Keyword overrides (poolclass, connect_args, ...) are passed through to
    create_async_engine and win over the defaults.
    """
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    is_sqlite = url.startswith("sqlite")
    if not is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    options.update(overrides)

    async_engine = create_async_engine(url, **options)
    if is_sqlite:
        event.listen(async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return async_engine


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = build_engine(settings.database_url)

# expire_on_commit=False: rows stay readable after commit for serialization
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Declarative base; its metadata is what Alembic migrates."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one AsyncSession per request.

    Commits on success, rolls back on any exception (which is re-raised for
    the global handlers), and always closes the session.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Close pooled connections during application shutdown."""
    await engine.dispose()
