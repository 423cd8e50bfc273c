# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin user.

Run once after the schema has been applied:
    python bin/manage_schema.py apply
    python bin/seed_admin.py

The script reads FIRST_ADMIN_USERNAME, FIRST_ADMIN_EMAIL and
FIRST_ADMIN_PASSWORD from etc/app.conf.  After the row is inserted those
values are no longer used by the application.

The admin account is created ``active`` with ``email_verified`` set, so it
does not wait in ``pending`` for a verification mail that nobody sends.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_admin.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from accounts.store import create_user     # noqa: E402
from core.config import settings           # noqa: E402
from core.errors import Conflict           # noqa: E402
from database import session_scope         # noqa: E402
from models.user import User               # noqa: E402


def _holder_of(db, email: str, username: str):
    """Any row, soft-deleted or not, that already owns *email* or *username*."""
    return (
        db.query(User)
        .filter((User.email == email.strip().lower()) | (User.username == username.strip().lower()))
        .order_by(User.deleted_at.is_(None))
        .first()
    )


def seed(factory=None) -> int:
    if not settings.first_admin_email or not settings.first_admin_password:
        print("[seed_admin] FIRST_ADMIN_EMAIL or FIRST_ADMIN_PASSWORD not set in etc/app.conf – nothing to do.")
        return 0

    try:
        with session_scope(factory) as db:
            holder = _holder_of(db, settings.first_admin_email, settings.first_admin_username)
            if holder is not None and holder.is_deleted:
                print(
                    f"[seed_admin] A deleted account ('{holder.username}', '{holder.email}') still holds "
                    "that username or email – purge it or pick other FIRST_ADMIN_* values."
                )
                return 1
            if holder is not None and holder.email == settings.first_admin_email.strip().lower():
                print(f"[seed_admin] Admin '{settings.first_admin_email}' already exists – skipping.")
                return 0
            if holder is not None:
                print(f"[seed_admin] Username '{settings.first_admin_username}' is already taken.")
                return 1

            create_user(
                db,
                username=settings.first_admin_username,
                email=settings.first_admin_email,
                password=settings.first_admin_password,
                role="admin",
                status="active",
                email_verified=True,
            )
    except Conflict as exc:
        print(f"[seed_admin] Cannot create admin: {exc}")
        return 1

    print(f"[seed_admin] Admin '{settings.first_admin_email}' created successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(seed())
