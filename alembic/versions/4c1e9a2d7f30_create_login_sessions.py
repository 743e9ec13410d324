"""create login_sessions table

Revision ID: 4c1e9a2d7f30
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4c1e9a2d7f30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create login_sessions with the one-active-session-per-identity index."""
    op.create_table(
        "login_sessions",
        sa.Column("session_id", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=256), nullable=False),
        sa.Column("nickname", sa.String(length=256), nullable=False),
        sa.Column("device_fingerprint", sa.String(length=256), nullable=False),
        sa.Column("client_address", sa.String(length=128), nullable=False),
        sa.Column("server_address", sa.String(length=128), nullable=False),
        sa.Column("server_hardware_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.Float(), nullable=False),
        sa.Column("last_accessed", sa.Float(), nullable=False),
        sa.Column(
            "inactive_seconds",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.PrimaryKeyConstraint("session_id"),
    )
    op.create_index("ix_login_sessions_status", "login_sessions", ["status"])
    op.create_index(
        "ix_login_sessions_identity",
        "login_sessions",
        ["email", "nickname"],
    )
    op.create_index(
        "uq_login_sessions_active_identity",
        "login_sessions",
        ["email", "nickname"],
        unique=True,
        postgresql_where=sa.text("status = 'Active'"),
        sqlite_where=sa.text("status = 'Active'"),
    )


def downgrade() -> None:
    """Drop login_sessions table."""
    op.drop_index("uq_login_sessions_active_identity", table_name="login_sessions")
    op.drop_index("ix_login_sessions_identity", table_name="login_sessions")
    op.drop_index("ix_login_sessions_status", table_name="login_sessions")
    op.drop_table("login_sessions")
