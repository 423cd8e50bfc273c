# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Schema manager – applies and reverts the ``users`` / ``user_sessions``
schema through the Alembic revisions in ``migrations/versions``.

    apply()    upgrade to head   (tables, enum types, indexes)
    revert()   downgrade to base (indexes, tables, enum types)

Each revision's downgrade is the exact inverse of its upgrade, so
``revert(); apply()`` leaves an equivalent empty schema.

Both run on a connection handed to ``migrations/env.py`` through
``Config.attributes``: either the caller's own (its transaction, its
commit) or one opened here on :func:`database.make_engine` inside a single
transaction.
"""

from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy.engine import Connection

from core.config import settings
from core.logger import get_logger
from database import make_engine

log = get_logger(__name__)

_MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def alembic_config(database_url: Optional[str] = None) -> Config:
    """Alembic Config pointing at our migrations, independent of the cwd."""
    cfg = Config()
    cfg.set_main_option("script_location", str(_MIGRATIONS_DIR))
    # ConfigParser interpolation: a literal % in a password must be doubled
    url = database_url or settings.database_url
    cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return cfg


def _run(action, revision: str, database_url: Optional[str], connection: Optional[Connection]) -> None:
    cfg = alembic_config(database_url)
    if connection is not None:
        cfg.attributes["connection"] = connection
        action(cfg, revision)
        return

    engine = make_engine(database_url or settings.database_url)
    try:
        with engine.begin() as conn:
            cfg.attributes["connection"] = conn
            action(cfg, revision)
    finally:
        engine.dispose()


def apply(database_url: Optional[str] = None, revision: str = "head",
          connection: Optional[Connection] = None) -> None:
    """Create the tables, defaults and indexes (upgrade to *revision*)."""
    log.info("Applying schema up to %s", revision)
    _run(command.upgrade, revision, database_url, connection)


def revert(database_url: Optional[str] = None, revision: str = "base",
           connection: Optional[Connection] = None) -> None:
    """Drop indexes then tables (downgrade to *revision*)."""
    log.info("Reverting schema down to %s", revision)
    _run(command.downgrade, revision, database_url, connection)


def current(database_url: Optional[str] = None) -> Optional[str]:
    """Return the applied revision id, or None on an empty database."""
    engine = make_engine(database_url or settings.database_url)
    try:
        with engine.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()
    finally:
        engine.dispose()
