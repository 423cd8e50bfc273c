# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Account store – the create / read / update / delete calls an upstream
service issues against the ``users`` and ``user_sessions`` tables.

Every function takes the caller's request-scoped ``Session`` and flushes
before returning, so constraint violations surface here (translated to
:mod:`core.errors` kinds) rather than at some later commit.  Each call runs
inside a SAVEPOINT: a rejected write is undone on its own and whatever the
caller already had pending in the session stays.  Committing is the
caller's job; :func:`database.session_scope` does it for scripts.

Nothing here retries.
"""

from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from core.errors import Conflict, InvalidReference, translate_db_error
from core.logger import get_logger
from core.security import generate_token, hash_password
from models.common import utcnow
from models.user import User
from models.user_session import UserSession

log = get_logger(__name__)

# Columns update_user leaves alone: identity, credentials, audit stamps and
# soft deletion each have their own path.
_PROTECTED_USER_COLUMNS = frozenset(
    {"id", "password_hash", "created_at", "updated_at", "deleted_at"}
)


@contextmanager
def _translated(db: Session, action: str):
    """
    Run the block in a SAVEPOINT, flush it, and turn database errors into
    store errors.  A failure rolls back to the savepoint only.
    """
    try:
        with db.begin_nested():
            yield
            db.flush()
    except SQLAlchemyError as exc:
        err = translate_db_error(exc)
        if isinstance(err, (Conflict, InvalidReference)):
            log.warning("%s rejected: %s", action, err)
        else:
            log.error("%s failed: %s", action, err, exc_info=True)
        raise err from exc


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def create_user(db: Session, username: str, email: str, password: str, **fields) -> User:
    """
    Insert a user.  *password* is hashed here; the plaintext goes no further.

    Raises ``Conflict`` when the username or email (in any letter case) is
    already taken.
    """
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        **fields,
    )
    with _translated(db, "create_user"):
        db.add(user)
    log.info("Created user %s (%s)", user.id, user.username)
    return user


def get_user(db: Session, user_id, include_deleted: bool = False) -> Optional[User]:
    if include_deleted:
        return db.get(User, user_id)
    return User.live(db).filter(User.id == user_id).first()


def update_user(db: Session, user: User, **fields) -> User:
    """
    Apply *fields* to *user*.  ``password`` is accepted and hashed.

    Only mapped columns may be set; ``id``, ``password_hash``, the audit
    timestamps and ``deleted_at`` are refused.  Every name is checked
    before anything is assigned, so a bad call changes nothing.
    """
    password = fields.pop("password", None)
    writable = {attr.key for attr in inspect(User).column_attrs} - _PROTECTED_USER_COLUMNS
    rejected = sorted(set(fields) - writable)
    if rejected:
        raise AttributeError(f"User fields cannot be updated: {', '.join(rejected)}")
    with _translated(db, "update_user"):
        for name, value in fields.items():
            setattr(user, name, value)
        if password is not None:
            user.set_password(password)
    return user


def soft_delete_user(db: Session, user_id, reason: str = "account_deleted") -> bool:
    """
    Mark the user deleted and revoke its active sessions.  The row stays
    addressable by id.  Returns False when no live user has that id.
    """
    user = get_user(db, user_id)
    if user is None:
        return False
    with _translated(db, "soft_delete_user"):
        now = utcnow()
        user.soft_delete(now)
        revoked = UserSession.revoke_all_user_sessions(db, user.id, reason=reason, now=now)
    log.info("Soft-deleted user %s, revoked %d session(s)", user.id, revoked)
    return True


def delete_user(db: Session, user_id) -> bool:
    """Physically remove the user row; the database cascades to its sessions."""
    user = db.get(User, user_id)
    if user is None:
        return False
    with _translated(db, "delete_user"):
        db.delete(user)
    log.info("Deleted user %s", user_id)
    return True


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def create_session(
    db: Session,
    user_id,
    refresh_token: Optional[str] = None,
    expires_at: Optional[datetime] = None,
    **fields,
) -> UserSession:
    """
    Open a session for *user_id*.

    Raises ``InvalidReference`` when the user does not exist or is
    soft-deleted, ``Conflict`` when the refresh token is already in use.
    """
    if get_user(db, user_id) is None:
        log.warning("create_session rejected: no live user %s", user_id)
        raise InvalidReference("Referenced user does not exist")

    if expires_at is None:
        expires_at = utcnow() + timedelta(days=settings.session_lifetime_days)

    session = UserSession(
        user_id=user_id,
        refresh_token=refresh_token or generate_token(),
        expires_at=expires_at,
        **fields,
    )
    with _translated(db, "create_session"):
        db.add(session)
    log.info("Opened session %s for user %s", session.id, user_id)
    return session


def get_session(db: Session, session_id) -> Optional[UserSession]:
    return db.get(UserSession, session_id)


def list_sessions(db: Session, user_id, active_only: bool = False) -> List[UserSession]:
    return UserSession.for_user(db, user_id, active_only=active_only)


def revoke_session(db: Session, session_id, reason: str = "manual") -> bool:
    """Revoke one session.  False when it is missing or already terminal."""
    session = get_session(db, session_id)
    if session is None:
        return False
    with _translated(db, "revoke_session"):
        changed = session.revoke(reason)
    if changed:
        log.info("Revoked session %s (%s)", session.id, reason)
    return changed


def sweep_expired_sessions(db: Session, now: Optional[datetime] = None) -> int:
    """Write ``expired`` onto active sessions whose expiry has passed."""
    with _translated(db, "sweep_expired_sessions"):
        count = UserSession.cleanup_expired_sessions(db, now=now)
    log.info("Expired %d stale session(s)", count)
    return count
