"""
Database Configuration and Session Management
Read-only access to the resource and grant stores
"""

import asyncio
from contextlib import contextmanager
from typing import Any, AsyncIterator, Dict, Iterator

from sqlalchemy import event, exc, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
import structlog

from workspace_authz.core.config import settings, DATABASE_CONFIG
from workspace_authz.core.exceptions import StorageTimeout, StorageUnavailable

logger = structlog.get_logger()

# PostgreSQL "query_canceled", raised when statement_timeout fires
QUERY_CANCELED_SQLSTATE = "57014"

# Create declarative base
Base = declarative_base()


def build_engine(database_url: str, **overrides: Any) -> AsyncEngine:
    """
    Create an async engine for the given URL

    Pool tuning and the server-side statement timeout only apply to
    PostgreSQL; other backends keep their dialect defaults.
    """
    engine_kwargs: Dict[str, Any] = {
        "echo": settings.ENVIRONMENT == "development" and settings.DEBUG,
    }

    if database_url.startswith("postgresql"):
        engine_kwargs.update(DATABASE_CONFIG)
        server_settings = {
            "jit": "off",
            "application_name": "workspace-authz",
        }
        if settings.DB_STATEMENT_TIMEOUT_MS:
            server_settings["statement_timeout"] = str(settings.DB_STATEMENT_TIMEOUT_MS)
        engine_kwargs["connect_args"] = {"server_settings": server_settings}

    engine_kwargs.update(overrides)
    new_engine = create_async_engine(database_url, **engine_kwargs)
    _attach_pool_logging(new_engine)
    return new_engine


def _attach_pool_logging(target: AsyncEngine) -> None:
    @event.listens_for(target.sync_engine, "checkout")
    def receive_checkout(dbapi_connection, connection_record, connection_proxy):
        """Log connection checkout for monitoring"""
        logger.debug("Database connection checked out", connection_id=id(dbapi_connection))

    @event.listens_for(target.sync_engine, "checkin")
    def receive_checkin(dbapi_connection, connection_record):
        """Log connection checkin for monitoring"""
        logger.debug("Database connection checked in", connection_id=id(dbapi_connection))


engine = build_engine(settings.DATABASE_URL)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Session for one request

    The authorization core never writes, so the transaction is always rolled
    back; an abandoned request leaves nothing behind.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.rollback()


def _sqlstate(error: exc.DBAPIError) -> str | None:
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


@contextmanager
def translate_storage_errors(operation: str) -> Iterator[None]:
    """
    Surface store failures as StorageTimeout / StorageUnavailable

    Wraps one repository round-trip. A timeout is never turned into an empty
    result. Errors that are neither timeouts nor connectivity problems
    propagate unchanged.
    """
    try:
        yield
    except StorageTimeout:
        raise
    except StorageUnavailable:
        raise
    except (asyncio.TimeoutError, TimeoutError, exc.TimeoutError) as e:
        logger.error("Authorization store timed out", operation=operation, error=str(e))
        raise StorageTimeout(operation=operation) from e
    except exc.DBAPIError as e:
        if _sqlstate(e) == QUERY_CANCELED_SQLSTATE:
            logger.error("Authorization store statement timed out", operation=operation, error=str(e))
            raise StorageTimeout(operation=operation) from e
        if e.connection_invalidated or isinstance(e, (exc.OperationalError, exc.InterfaceError)):
            logger.error("Authorization store unavailable", operation=operation, error=str(e))
            raise StorageUnavailable(operation=operation) from e
        raise
    except OSError as e:
        logger.error("Authorization store unreachable", operation=operation, error=str(e))
        raise StorageUnavailable(operation=operation) from e


# Health check function
async def check_database_health() -> bool:
    """
    Check database connectivity
    Used by health check endpoints of the embedding service
    """
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return False


# Database initialization
async def init_database(target: AsyncEngine | None = None):
    """
    Create resource, grant and ancestor tables
    Used for local development and tests; production schemas are owned by the storage layer
    """
    target = target or engine
    try:
        async with target.begin() as conn:
            # Import all models to ensure they're registered
            from workspace_authz import models  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Database initialization failed", error=str(e))
        raise


# Cleanup function
async def close_database():
    """
    Close database connections
    Called during application shutdown
    """
    try:
        await engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error("Error closing database connections", error=str(e))
