# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""User ORM model."""

import re
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    false,
    text,
)
from sqlalchemy.orm import Session, relationship, validates
from sqlalchemy.sql import func

from accounts.schemas import UserPublic
from core.security import hash_password, verify_password
from database import Base
from models.common import DocumentType, as_utc, resolve_now, validate_document

USER_ROLES = ("user", "admin", "moderator")
USER_STATUSES = ("active", "inactive", "suspended", "pending")

_USERNAME_RE = re.compile(r"^[a-z0-9_-]{3,50}$")


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        Index("users_email_unique", "email", unique=True),
        Index("users_username_unique", "username", unique=True),
        Index("users_status_idx", "status"),
        Index("users_role_idx", "role"),
        Index("users_email_verified_idx", "email_verified"),
        Index("users_created_at_idx", "created_at"),
        Index("users_deleted_at_idx", "deleted_at"),
        CheckConstraint("login_attempts >= 0", name="users_login_attempts_non_negative"),
        # a token is never stored without its expiry
        CheckConstraint(
            "password_reset_token IS NULL OR password_reset_expires IS NOT NULL",
            name="users_password_reset_expiry",
        ),
        CheckConstraint(
            "email_verification_token IS NULL OR email_verification_expires IS NOT NULL",
            name="users_email_verification_expiry",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Stored lower-case; see the validators below.
    username = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    # passlib hash string, salt embedded.  Never the raw password.
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    avatar_url = Column(Text, nullable=True)
    role = Column(
        Enum(*USER_ROLES, name="user_role"),
        nullable=False,
        default="user",
        server_default="user",
    )
    status = Column(
        Enum(*USER_STATUSES, name="user_status"),
        nullable=False,
        default="pending",
        server_default="pending",
    )
    email_verified = Column(Boolean, nullable=False, default=False, server_default=false())
    email_verification_token = Column(String(255), nullable=True)
    email_verification_expires = Column(DateTime(timezone=True), nullable=True)
    password_reset_token = Column(String(255), nullable=True)
    password_reset_expires = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    login_attempts = Column(Integer, nullable=False, default=0, server_default=text("0"))
    # Login is refused while this lies in the future.
    locked_until = Column(DateTime(timezone=True), nullable=True)
    preferences = Column(DocumentType, nullable=True, default=dict, server_default=text("'{}'"))
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", DocumentType, nullable=True, default=dict, server_default=text("'{}'"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    # Soft delete: set instead of removing the row.
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # The database owns the cascade (ON DELETE CASCADE); passive_deletes keeps
    # the ORM from loading every session just to delete it.
    sessions = relationship(
        "UserSession",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="UserSession.created_at",
    )

    # -- normalisation / validation -----------------------------------------

    @validates("email")
    def _normalise_email(self, _key, value):
        value = (value or "").strip().lower()
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("Invalid email address")
        return value

    @validates("username")
    def _normalise_username(self, _key, value):
        value = (value or "").strip().lower()
        if not _USERNAME_RE.match(value):
            raise ValueError(
                "Username must be 3-50 characters of letters, digits, '_' or '-'"
            )
        return value

    @validates("role")
    def _check_role(self, _key, value):
        if value not in USER_ROLES:
            raise ValueError(f"Invalid role {value!r}")
        return value

    @validates("status")
    def _check_status(self, _key, value):
        if value not in USER_STATUSES:
            raise ValueError(f"Invalid status {value!r}")
        return value

    @validates("login_attempts")
    def _check_login_attempts(self, _key, value):
        if value is not None and value < 0:
            raise ValueError("login_attempts cannot be negative")
        return value

    @validates("preferences", "metadata_")
    def _check_document(self, key, value):
        return validate_document(key.rstrip("_"), value)

    @validates(
        "email_verification_expires",
        "password_reset_expires",
        "last_login_at",
        "locked_until",
        "deleted_at",
    )
    def _normalise_timestamp(self, _key, value):
        return as_utc(value)

    # -- passwords ------------------------------------------------------------

    @staticmethod
    def hash_password(plain: str) -> str:
        return hash_password(plain)

    def set_password(self, plain: str) -> None:
        self.password_hash = hash_password(plain)

    def validate_password(self, plain: str) -> bool:
        """Check *plain* against the stored hash.  Never logs either value."""
        return verify_password(plain, self.password_hash)

    # -- lookups --------------------------------------------------------------

    @classmethod
    def live(cls, db: Session):
        """
        Base query for every lookup path: excludes soft-deleted users.
        A deleted user is still reachable through ``db.get(User, id)``.
        """
        return db.query(cls).filter(cls.deleted_at.is_(None))

    @classmethod
    def find_by_email(cls, db: Session, email: str) -> Optional["User"]:
        if not email:
            return None
        return cls.live(db).filter(cls.email == email.strip().lower()).first()

    @classmethod
    def find_by_username(cls, db: Session, username: str) -> Optional["User"]:
        if not username:
            return None
        return cls.live(db).filter(cls.username == username.strip().lower()).first()

    # -- state ----------------------------------------------------------------

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, now: Optional[datetime] = None) -> None:
        if self.deleted_at is None:
            self.deleted_at = resolve_now(now)

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        locked_until = as_utc(self.locked_until)
        return locked_until is not None and locked_until > resolve_now(now)

    def set_password_reset_token(self, token: str, expires_at: datetime,
                                 now: Optional[datetime] = None) -> None:
        """Store a reset token together with its (future) expiry."""
        if not token:
            raise ValueError("token must not be empty")
        if as_utc(expires_at) <= resolve_now(now):
            raise ValueError("password reset expiry must be in the future")
        self.password_reset_token = token
        self.password_reset_expires = expires_at

    def clear_password_reset(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None

    def set_email_verification_token(self, token: str, expires_at: datetime,
                                     now: Optional[datetime] = None) -> None:
        if not token:
            raise ValueError("token must not be empty")
        if as_utc(expires_at) <= resolve_now(now):
            raise ValueError("email verification expiry must be in the future")
        self.email_verification_token = token
        self.email_verification_expires = expires_at

    def mark_email_verified(self) -> None:
        self.email_verified = True
        self.email_verification_token = None
        self.email_verification_expires = None

    def to_safe_dict(self) -> dict:
        """Public projection of the account; no hashes, no tokens."""
        return UserPublic.model_validate(self).model_dump()

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username}, email={self.email})"
