# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy engine, session factory, declarative base, and the scoped
session helpers used by the account store and the operator scripts.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from core.config import settings
from core.errors import StoreError, translate_db_error
from core.logger import get_logger

log = get_logger(__name__)


def make_engine(url: str, **kwargs) -> Engine:
    """
    Build an engine for *url*.

    pool_pre_ping keeps idle connections alive across server-side idle
    timeouts.  SQLite gets foreign-key enforcement switched on per
    connection; without it ON DELETE CASCADE is silently ignored.  The
    pysqlite driver also has its implicit transaction handling turned off
    and BEGIN emitted explicitly, otherwise SAVEPOINT does not nest.
    """
    kwargs.setdefault("pool_pre_ping", True)
    kwargs.setdefault("echo", settings.sql_echo)
    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _sqlite_foreign_keys)
        if engine.dialect.driver == "pysqlite":
            event.listen(engine, "connect", _pysqlite_manual_transactions)
            event.listen(engine, "begin", _sqlite_begin)
    return engine


def _sqlite_foreign_keys(dbapi_conn, _record):
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def _pysqlite_manual_transactions(dbapi_conn, _record):
    dbapi_conn.isolation_level = None


def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


engine = make_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@contextmanager
def session_scope(factory=None):
    """
    Yield a session for one unit of work.

    Commits when the block exits cleanly, rolls back on any exception and
    always closes the session.  Database errors leave the block translated
    into :mod:`core.errors` kinds; nothing is retried here.
    """
    db = (factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except StoreError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        err = translate_db_error(exc)
        log.error("Unit of work failed: %s", type(err).__name__, exc_info=True)
        raise err from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

