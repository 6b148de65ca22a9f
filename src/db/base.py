"""Declarative base, engine and session factory."""
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from src.app.config import settings


class Base(DeclarativeBase):
    pass


def create_db_engine(url: Optional[str] = None) -> Engine:
    """
    Build an engine for the configured database.

    SQLite URLs (used by tests and local runs) get a static pool for
    in-memory databases and cross-thread access; everything else uses a
    regular pool with pre-ping so dropped connections surface early.
    """
    url = url or settings.SQLALCHEMY_DATABASE_URI
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


engine = create_db_engine()
SessionLocal = create_session_factory(engine)
