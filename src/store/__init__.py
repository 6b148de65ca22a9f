"""
Store package.

`build_store` picks the implementation from settings: a bare MemoryStore,
or the database wrapped in a FallbackStore with an in-memory secondary.
"""
import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from src.app.config import Settings, settings as default_settings
from .base import Store
from .fallback import FallbackStore
from .memory_store import MemoryStore
from .sql_store import SqlStore

logger = logging.getLogger(__name__)


def build_store(settings: Optional[Settings] = None, session_factory: Optional[sessionmaker] = None) -> Store:
    settings = settings or default_settings
    backend = settings.STORE_BACKEND.lower()

    if backend == "memory":
        logger.warning("STORE_BACKEND=memory: all data is held in process memory and lost on restart")
        return MemoryStore()

    if session_factory is None:
        from src.db.base import SessionLocal
        session_factory = SessionLocal

    return FallbackStore(
        primary=SqlStore(session_factory),
        secondary=MemoryStore(),
        retry_interval=settings.STORE_RETRY_INTERVAL_SECONDS,
    )


__all__ = [
    "Store",
    "SqlStore",
    "MemoryStore",
    "FallbackStore",
    "build_store",
]
