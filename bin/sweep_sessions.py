# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Mark expired-but-still-active sessions as ``expired``.

Meant for cron:
    */15 * * * *  python /opt/accounts/bin/sweep_sessions.py
"""

import sys
import os

_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from accounts.store import sweep_expired_sessions   # noqa: E402
from core.errors import StorageFailure              # noqa: E402
from database import session_scope                  # noqa: E402


def sweep() -> int:
    try:
        with session_scope() as db:
            count = sweep_expired_sessions(db)
    except StorageFailure as exc:
        print(f"[sweep_sessions] failed: {exc}", file=sys.stderr)
        return 1
    print(f"[sweep_sessions] {count} session(s) expired.")
    return 0


if __name__ == "__main__":
    sys.exit(sweep())
