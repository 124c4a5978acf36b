"""
SkillSphere – Async SQLAlchemy engine, session factory, and declarative base.

The engine modules open their own short transactions through ``async_session``;
routers that only need plain reads use the ``get_db`` dependency.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def engine_options(url: str) -> dict:
    """Keyword arguments for ``create_async_engine`` based on the database URL."""
    options = {"echo": settings.DEBUG}
    if url.startswith("sqlite"):
        # aiosqlite waits this many seconds on a locked database file.
        options["connect_args"] = {"timeout": 30}
    else:
        options["pool_pre_ping"] = True
    return options


# ── Engine ──
engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

# ── Session factory ──
async_session = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Declarative base ──
class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# ── Dependency for FastAPI routes ──
async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield a request-scoped session; commit on success, roll back on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
