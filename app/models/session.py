"""
Login session table — backing rows for the SQL session store.

One row per session ever created.  Rows are never deleted except by
the admin purge; logout / termination / inactivity only change
`status`.

The one-active-session-per-identity rule is a partial unique index on
(email, nickname) restricted to `status = 'Active'`, so two concurrent
logins for the same identity cannot both insert.
"""

from sqlalchemy import Float, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base

ACTIVE_ONLY = text("status = 'Active'")


class LoginSession(Base):
    __tablename__ = "login_sessions"

    session_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(256), nullable=False)
    nickname: Mapped[str] = mapped_column(String(256), nullable=False)
    device_fingerprint: Mapped[str] = mapped_column(String(256), nullable=False)
    client_address: Mapped[str] = mapped_column(String(128), nullable=False)
    server_address: Mapped[str] = mapped_column(String(128), nullable=False)
    server_hardware_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # Epoch seconds (UTC instants).
    created_at: Mapped[float] = mapped_column(Float, nullable=False)
    last_accessed: Mapped[float] = mapped_column(Float, nullable=False)
    inactive_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(32), nullable=False, index=True)

    __table_args__ = (
        Index(
            "uq_login_sessions_active_identity",
            "email",
            "nickname",
            unique=True,
            postgresql_where=ACTIVE_ONLY,
            sqlite_where=ACTIVE_ONLY,
        ),
        Index("ix_login_sessions_identity", "email", "nickname"),
    )

    def __repr__(self) -> str:
        return f"<LoginSession {self.session_id} {self.email}/{self.nickname} status={self.status}>"
