"""
Engine and session management.

`SessionLocal` is bound lazily to the engine built from the configured database
provider. `session_context` is for scripts and tests; `generate_session` is the
FastAPI dependency form.
"""

from collections.abc import Generator
from contextlib import contextmanager
from functools import lru_cache

import sqlalchemy as sa
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from appscope.core.config import get_app_settings


def sql_global_init(db_url: str, connect_args: dict | None = None, echo: bool = False) -> sa.Engine:
    """
    Creates the SQLAlchemy engine for `db_url`.

    In-memory SQLite shares one connection through `StaticPool` so every session
    sees the same database.
    """
    kwargs: dict = {"connect_args": connect_args or {}, "echo": echo}
    if db_url == "sqlite://":
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    return sa.create_engine(db_url, **kwargs)


@lru_cache
def get_engine() -> sa.Engine:
    settings = get_app_settings()
    if settings.DB_PROVIDER is None:
        raise ValueError("DB_PROVIDER is not configured")
    return sql_global_init(settings.DB_URL, settings.DB_PROVIDER.connect_args, echo=settings.QUERY_ECHO)


SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


@contextmanager
def session_context() -> Generator[Session, None, None]:
    """Yields a session bound to the application engine and closes it afterwards."""
    session = SessionLocal(bind=get_engine())
    try:
        yield session
    finally:
        session.close()


def generate_session() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    with session_context() as session:
        yield session
