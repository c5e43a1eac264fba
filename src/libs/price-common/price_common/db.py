# src/libs/price-common/price_common/db.py
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from .config import POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_HOST, POSTGRES_PORT, POSTGRES_DB, DB_POOL_SIZE


def _configured_database_url() -> str:
    """
    DATABASE_URL (set inside containers) wins over HOST_DATABASE_URL (set on a
    developer machine). Without either, the URL is composed from POSTGRES_*.
    """
    return (
        os.getenv("DATABASE_URL")
        or os.getenv("HOST_DATABASE_URL")
        or f"postgresql+psycopg2://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}"
    )


def _with_driver(url: str, driver_scheme: str) -> str:
    if url.startswith(driver_scheme):
        return url
    for scheme in ("postgresql+asyncpg://", "postgresql+psycopg2://", "postgresql://"):
        if url.startswith(scheme):
            return driver_scheme + url[len(scheme):]
    return url


def to_sync_database_url(url: str) -> str:
    """Rewrites a postgres URL to name the psycopg2 driver explicitly."""
    return _with_driver(url, "postgresql+psycopg2://")


def to_async_database_url(url: str) -> str:
    """Rewrites a postgres URL to use the asyncpg driver scheme."""
    return _with_driver(url, "postgresql+asyncpg://")


def get_sync_database_url() -> str:
    """The configured URL on the psycopg2 driver, for tools and migrations."""
    return to_sync_database_url(_configured_database_url())


def get_async_database_url() -> str:
    return to_async_database_url(_configured_database_url())


# Seeding tools run synchronously
engine = create_engine(get_sync_database_url(), pool_pre_ping=True, pool_size=DB_POOL_SIZE)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Consumers open one AsyncSession per message
async_engine = create_async_engine(get_async_database_url(), pool_pre_ping=True, pool_size=DB_POOL_SIZE)
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)
