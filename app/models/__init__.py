"""
Models package — import every table so SQLAlchemy's Base.metadata
knows about it (critical for Alembic and test schema setup).
"""

from app.models.base import Base
from app.models.record import Identity, ServerInfo, SessionRecord, SessionStatus
from app.models.session import LoginSession

__all__ = [
    "Base",
    "Identity",
    "LoginSession",
    "ServerInfo",
    "SessionRecord",
    "SessionStatus",
]
