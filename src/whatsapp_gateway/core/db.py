"""
Database engine and sessions.

The engine is built from ``Settings``. PostgreSQL gets a sized pool with
pre-ping; SQLite (local runs and tests) is opened for use across threads.
"""

import functools

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from whatsapp_gateway.core.settings import Settings, get_settings

Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    """Create an engine for ``settings.DATABASE_URL``."""
    url = make_url(settings.DATABASE_URL)

    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # In-memory databases live and die with their connection
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=settings.DB_ECHO, **kwargs)

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        echo=settings.DB_ECHO,
    )


@functools.lru_cache()
def get_engine() -> Engine:
    """Application engine (cached, created on first use)."""
    return build_engine(get_settings())


@functools.lru_cache()
def get_sessionmaker() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db():
    """
    FastAPI dependency yielding a session per request.

    Uncommitted work is rolled back when the request fails.
    """
    db: Session = get_sessionmaker()()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
