# kitchen_inventory/database.py
"""
SQLite database connection for Kitchen Inventory.

Uses SQLAlchemy 2.0 async with the aiosqlite driver. The engine and the
session factory belong to one application instance (app.state), they are
created in the FastAPI lifespan and disposed on shutdown.
"""
from __future__ import annotations
from pathlib import Path
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import text

from kitchen_inventory.settings import Settings

# ============================================================================
# Base class for all ORM models
# ============================================================================

class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


# ============================================================================
# Engine and Session Factory
# ============================================================================

def create_engine(settings: Settings) -> AsyncEngine:
    """Build the async engine; makes sure the sqlite file's directory exists."""
    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    return create_async_engine(
        settings.database_url,
        echo=settings.DB_ECHO,  # Log SQL queries if DEBUG
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet."""
    # models must be imported so their tables are registered on Base.metadata
    from kitchen_inventory import db_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """Close database connections."""
    await engine.dispose()


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI - provides database session.

    Writes are committed by the store itself (one commit per row write);
    here we only roll back whatever is left open when the handler fails.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_session)):
            ...
    """
    factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_session_context(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database session (for use outside FastAPI).

    Usage:
        async with get_session_context(factory) as db:
            result = await db.execute(...)
    """
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# ============================================================================
# Health Check
# ============================================================================

async def check_db_health(factory: async_sessionmaker[AsyncSession]) -> dict:
    """Check database connectivity and return status."""
    try:
        async with get_session_context(factory) as db:
            result = await db.execute(text("SELECT 1"))
            result.scalar()
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        return {"status": "unhealthy", "database": "disconnected", "error": str(e)}
