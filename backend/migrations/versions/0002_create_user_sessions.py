"""Create user_sessions table

Revision ID: 0002_create_user_sessions
Revises: 0001_create_users
Create Date: 2026-10-19

One row per refresh token.  Sessions cascade with their user on update and
delete.  The two composite indexes serve "active sessions for a user" and
the sweep of expired-but-still-active sessions.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0002_create_user_sessions"
down_revision = "0001_create_users"
branch_labels = None
depends_on = None

_session_status = sa.Enum("active", "expired", "revoked", name="session_status")

_document = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
_ip_address = sa.String(45).with_variant(postgresql.INET(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "user_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", onupdate="CASCADE", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("refresh_token", sa.String(512), nullable=False),
        sa.Column("device_info", _document, nullable=True, server_default=sa.text("'{}'")),
        sa.Column("ip_address", _ip_address, nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("status", _session_status, nullable=False, server_default="active"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoke_reason", sa.String(100), nullable=True),
        sa.Column("location_info", _document, nullable=True, server_default=sa.text("'{}'")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    op.create_index(
        "user_sessions_refresh_token_unique", "user_sessions", ["refresh_token"], unique=True
    )
    op.create_index("user_sessions_user_id_idx", "user_sessions", ["user_id"])
    op.create_index("user_sessions_status_idx", "user_sessions", ["status"])
    op.create_index("user_sessions_expires_at_idx", "user_sessions", ["expires_at"])
    op.create_index("user_sessions_last_activity_at_idx", "user_sessions", ["last_activity_at"])
    op.create_index("user_sessions_created_at_idx", "user_sessions", ["created_at"])
    op.create_index("user_sessions_ip_address_idx", "user_sessions", ["ip_address"])

    # Composite indexes
    op.create_index("user_sessions_user_id_status_idx", "user_sessions", ["user_id", "status"])
    op.create_index(
        "user_sessions_status_expires_at_idx", "user_sessions", ["status", "expires_at"]
    )


def downgrade() -> None:
    op.drop_index("user_sessions_status_expires_at_idx", table_name="user_sessions")
    op.drop_index("user_sessions_user_id_status_idx", table_name="user_sessions")
    op.drop_index("user_sessions_ip_address_idx", table_name="user_sessions")
    op.drop_index("user_sessions_created_at_idx", table_name="user_sessions")
    op.drop_index("user_sessions_last_activity_at_idx", table_name="user_sessions")
    op.drop_index("user_sessions_expires_at_idx", table_name="user_sessions")
    op.drop_index("user_sessions_status_idx", table_name="user_sessions")
    op.drop_index("user_sessions_user_id_idx", table_name="user_sessions")
    op.drop_index("user_sessions_refresh_token_unique", table_name="user_sessions")
    op.drop_table("user_sessions")

    _session_status.drop(op.get_bind(), checkfirst=True)
