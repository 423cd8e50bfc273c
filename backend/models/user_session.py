# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
UserSession ORM model – one row per refresh token handed out at login.

Lifecycle
---------
    active ──(expires_at passes)──▶ expired
    active ──(revoke)──────────────▶ revoked

``expired`` and ``revoked`` are terminal.  :meth:`UserSession.is_valid` only
reads; the ``expired`` status is written by the sweep
(:meth:`UserSession.cleanup_expired_sessions`), never by the check.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Session, relationship, validates
from sqlalchemy.sql import func

from accounts.schemas import SessionInfo
from database import Base
from models.common import DocumentType, IPAddressType, as_utc, resolve_now, validate_document

SESSION_STATUSES = ("active", "expired", "revoked")


class UserSession(Base):
    __tablename__ = "user_sessions"
    __table_args__ = (
        Index("user_sessions_refresh_token_unique", "refresh_token", unique=True),
        Index("user_sessions_user_id_idx", "user_id"),
        Index("user_sessions_status_idx", "status"),
        Index("user_sessions_expires_at_idx", "expires_at"),
        Index("user_sessions_last_activity_at_idx", "last_activity_at"),
        Index("user_sessions_created_at_idx", "created_at"),
        Index("user_sessions_ip_address_idx", "ip_address"),
        # "active sessions for a user"
        Index("user_sessions_user_id_status_idx", "user_id", "status"),
        # "expired but still marked active" sweep
        Index("user_sessions_status_expires_at_idx", "status", "expires_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Cascade delete: removing a user removes all their sessions atomically.
    user_id = Column(
        Uuid,
        ForeignKey("users.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
    refresh_token = Column(String(512), nullable=False)
    device_info = Column(DocumentType, nullable=True, default=dict, server_default=text("'{}'"))
    ip_address = Column(IPAddressType, nullable=True)
    user_agent = Column(Text, nullable=True)
    status = Column(
        Enum(*SESSION_STATUSES, name="session_status"),
        nullable=False,
        default="active",
        server_default="active",
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    last_activity_at = Column(DateTime(timezone=True), nullable=True)
    # revoked_at and revoke_reason are always written together
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    revoke_reason = Column(String(100), nullable=True)
    location_info = Column(DocumentType, nullable=True, default=dict, server_default=text("'{}'"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user = relationship("User", back_populates="sessions")

    @validates("status")
    def _check_status(self, _key, value):
        if value not in SESSION_STATUSES:
            raise ValueError(f"Invalid session status {value!r}")
        return value

    @validates("device_info", "location_info")
    def _check_document(self, key, value):
        return validate_document(key, value)

    @validates("expires_at", "last_activity_at", "revoked_at")
    def _normalise_timestamp(self, _key, value):
        return as_utc(value)

    # -- predicates -----------------------------------------------------------

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """
        True iff the session is ``active`` and ``expires_at`` lies strictly
        after *now* (default: current UTC time).  Side-effect free.
        """
        if self.status != "active" or self.expires_at is None:
            return False
        return as_utc(self.expires_at) > resolve_now(now)

    @property
    def is_terminal(self) -> bool:
        return self.status in ("expired", "revoked")

    # -- transitions ----------------------------------------------------------

    def touch(self, now: Optional[datetime] = None) -> bool:
        """Record activity on an active session.  Terminal sessions are left alone."""
        if self.status != "active":
            return False
        self.last_activity_at = resolve_now(now)
        return True

    def revoke(self, reason: str = "manual", now: Optional[datetime] = None) -> bool:
        """
        active → revoked.  Returns False, changing nothing, when the session
        is already expired or revoked.
        """
        if self.status != "active":
            return False
        self.status = "revoked"
        self.revoked_at = resolve_now(now)
        self.revoke_reason = reason[:100]
        return True

    # -- bulk operations ------------------------------------------------------

    @classmethod
    def cleanup_expired_sessions(cls, db: Session, now: Optional[datetime] = None) -> int:
        """
        Mark every active session whose expiry has passed as ``expired``.
        Returns the number of rows updated.  The caller commits.
        """
        now = resolve_now(now)
        return (
            db.query(cls)
            .filter(cls.status == "active", cls.expires_at < now)
            .update(
                {
                    cls.status: "expired",
                    cls.revoked_at: now,
                    cls.revoke_reason: "expired",
                },
                synchronize_session="fetch",
            )
        )

    @classmethod
    def revoke_all_user_sessions(cls, db: Session, user_id, reason: str = "logout_all",
                                 now: Optional[datetime] = None) -> int:
        """Revoke every active session of *user_id*.  The caller commits."""
        now = resolve_now(now)
        return (
            db.query(cls)
            .filter(cls.user_id == user_id, cls.status == "active")
            .update(
                {
                    cls.status: "revoked",
                    cls.revoked_at: now,
                    cls.revoke_reason: reason[:100],
                },
                synchronize_session="fetch",
            )
        )

    # -- lookups --------------------------------------------------------------

    @classmethod
    def for_user(cls, db: Session, user_id, active_only: bool = False) -> List["UserSession"]:
        query = db.query(cls).filter(cls.user_id == user_id)
        if active_only:
            query = query.filter(cls.status == "active")
        return query.order_by(cls.created_at).all()

    @classmethod
    def find_valid_by_refresh_token(cls, db: Session, refresh_token: str,
                                    now: Optional[datetime] = None) -> Optional["UserSession"]:
        if not refresh_token:
            return None
        session = (
            db.query(cls)
            .filter(cls.refresh_token == refresh_token, cls.status == "active")
            .first()
        )
        if session is not None and session.is_valid(now):
            return session
        return None

    def to_safe_dict(self) -> dict:
        return SessionInfo.model_validate(self).model_dump()

    def __repr__(self) -> str:
        # refresh_token is a credential; keep it out of reprs and logs
        return f"UserSession(id={self.id}, user_id={self.user_id}, status={self.status})"
