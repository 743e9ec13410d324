"""
Session storage backends.

`build_session_store` picks the backend named by
`SESSION_STORE_BACKEND`.  The app calls it once at startup and injects
the result into the session registry.
"""

from app.core.config import Settings
from app.core.database import build_engine, build_session_factory
from app.storage.base import SessionStore
from app.storage.memory import MemorySessionStore
from app.storage.sql import SqlSessionStore


def build_session_store(settings: Settings) -> SessionStore:
    if settings.SESSION_STORE_BACKEND == "memory":
        return MemorySessionStore()
    engine = build_engine(settings.DATABASE_URL)
    return SqlSessionStore(
        build_session_factory(engine),
        engine=engine,
        timeout=settings.STORAGE_TIMEOUT_SECONDS,
    )


__all__ = [
    "MemorySessionStore",
    "SessionStore",
    "SqlSessionStore",
    "build_session_store",
]
