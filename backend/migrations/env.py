# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Alembic environment – wires the migration engine to the same SQLAlchemy
setup used by the application.

``schema.apply`` and ``schema.revert`` hand over an open connection in
``config.attributes["connection"]`` and own its transaction.  The ``alembic``
CLI does not; then an engine is built from ``sqlalchemy.url`` when set,
otherwise from the application's Settings.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup – make sure ``backend/`` is importable so that
# ``from core.config import settings`` and model imports work.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from alembic import context

from core.config import settings
from database import Base, make_engine

# Import every ORM model so that Base.metadata knows about all tables.
# Without this, ``alembic revision --autogenerate`` cannot detect them.
import models.user          # noqa: F401, E402
import models.user_session  # noqa: F401, E402

config = context.config


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or settings.database_url


# ---------------------------------------------------------------------------
# Online mode (the default – uses a live DB connection)
# ---------------------------------------------------------------------------
def run_migrations_online():
    # schema.apply / schema.revert pass their connection in
    connection = config.attributes.get("connection")
    if connection is not None:
        _run(connection)
        return

    connectable = make_engine(_database_url())
    try:
        with connectable.connect() as conn:
            _run(conn)
    finally:
        connectable.dispose()


def _run(conn):
    context.configure(
        connection=conn,
        target_metadata=Base.metadata,
        # SQLite cannot ALTER most things in place
        render_as_batch=conn.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


# ---------------------------------------------------------------------------
# Offline mode (generates SQL without a live connection)
# ---------------------------------------------------------------------------
def run_migrations_offline():
    context.configure(
        url=_database_url(),
        target_metadata=Base.metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
