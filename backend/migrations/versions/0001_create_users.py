"""Create users table

Revision ID: 0001_create_users
Revises:
Create Date: 2026-10-19

Creates the users table with its enum types, check constraints and the
seven indexes used by account lookups.  Soft-deleted rows keep their
unique email / username.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# Alembic revision identifiers
revision = "0001_create_users"
down_revision = None
branch_labels = None
depends_on = None

_user_role = sa.Enum("user", "admin", "moderator", name="user_role")
_user_status = sa.Enum("active", "inactive", "suspended", "pending", name="user_status")

# JSONB on PostgreSQL, JSON elsewhere
_document = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(50), nullable=True),
        sa.Column("last_name", sa.String(50), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("role", _user_role, nullable=False, server_default="user"),
        sa.Column("status", _user_status, nullable=False, server_default="pending"),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_verification_token", sa.String(255), nullable=True),
        sa.Column("email_verification_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_reset_token", sa.String(255), nullable=True),
        sa.Column("password_reset_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("login_attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("preferences", _document, nullable=True, server_default=sa.text("'{}'")),
        sa.Column("metadata", _document, nullable=True, server_default=sa.text("'{}'")),
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
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("login_attempts >= 0", name="users_login_attempts_non_negative"),
        sa.CheckConstraint(
            "password_reset_token IS NULL OR password_reset_expires IS NOT NULL",
            name="users_password_reset_expiry",
        ),
        sa.CheckConstraint(
            "email_verification_token IS NULL OR email_verification_expires IS NOT NULL",
            name="users_email_verification_expiry",
        ),
    )

    op.create_index("users_email_unique", "users", ["email"], unique=True)
    op.create_index("users_username_unique", "users", ["username"], unique=True)
    op.create_index("users_status_idx", "users", ["status"])
    op.create_index("users_role_idx", "users", ["role"])
    op.create_index("users_email_verified_idx", "users", ["email_verified"])
    op.create_index("users_created_at_idx", "users", ["created_at"])
    op.create_index("users_deleted_at_idx", "users", ["deleted_at"])


def downgrade() -> None:
    op.drop_index("users_deleted_at_idx", table_name="users")
    op.drop_index("users_created_at_idx", table_name="users")
    op.drop_index("users_email_verified_idx", table_name="users")
    op.drop_index("users_role_idx", table_name="users")
    op.drop_index("users_status_idx", table_name="users")
    op.drop_index("users_username_unique", table_name="users")
    op.drop_index("users_email_unique", table_name="users")
    op.drop_table("users")

    # PostgreSQL keeps enum types after the table is gone
    bind = op.get_bind()
    _user_status.drop(bind, checkfirst=True)
    _user_role.drop(bind, checkfirst=True)
