# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Persistence error kinds.

Callers see exactly three failures from the account store:

* ``Conflict``          – a unique constraint rejected the write
                          (username, email, refresh_token).
* ``InvalidReference``  – a foreign key rejected the write
                          (session for a missing user).
* ``StorageFailure``    – anything else the backend raised.

The first two are expected and recoverable by the caller; the third should
be propagated for retry/backoff decisions.  Nothing here retries.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

# SQLSTATE (PostgreSQL) and errno (MySQL) codes
_PG_UNIQUE = "23505"
_PG_FOREIGN_KEY = "23503"
_MYSQL_UNIQUE = {1062}
_MYSQL_FOREIGN_KEY = {1216, 1452}


class StoreError(Exception):
    """Base class for every error raised by the persistence layer."""

    def __init__(self, message: str, orig: Optional[BaseException] = None):
        super().__init__(message)
        self.orig = orig


class Conflict(StoreError):
    """Unique-constraint violation."""


class InvalidReference(StoreError):
    """Foreign-key violation."""


class StorageFailure(StoreError):
    """Connectivity, timeout or any other backend fault."""


def _driver_code(orig: BaseException):
    # psycopg2 → pgcode, psycopg 3 → sqlstate, pymysql / mysqlclient → args[0]
    for attr in ("pgcode", "sqlstate"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def _classify_integrity(exc: IntegrityError) -> type:
    orig = exc.orig if exc.orig is not None else exc
    code = _driver_code(orig)
    if code == _PG_UNIQUE or code in _MYSQL_UNIQUE:
        return Conflict
    if code == _PG_FOREIGN_KEY or code in _MYSQL_FOREIGN_KEY:
        return InvalidReference

    # SQLite (and unknown drivers): fall back to the message text
    text = str(orig).lower()
    if "unique" in text or "duplicate" in text:
        return Conflict
    if "foreign key" in text:
        return InvalidReference
    return StorageFailure


def translate_db_error(exc: SQLAlchemyError) -> StoreError:
    """
    Map a SQLAlchemy exception to one of the store error kinds.

    The returned error carries the driver exception on ``.orig``; raise it
    ``from exc`` to keep the chain.
    """
    if isinstance(exc, IntegrityError):
        kind = _classify_integrity(exc)
        if kind is Conflict:
            return Conflict("Record already exists", orig=exc.orig)
        if kind is InvalidReference:
            return InvalidReference("Referenced record does not exist", orig=exc.orig)
        return StorageFailure("Database constraint violation", orig=exc.orig)
    return StorageFailure("Database error", orig=getattr(exc, "orig", None))
