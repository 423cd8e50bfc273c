# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Centralised logging configuration.

Levels, handlers and rotation live in etc/logging.conf.  This module resolves
the log-file path, patches it into the config text, and applies it via the
standard-library fileConfig loader.

Import the ready-made logger anywhere:
    from core.logger import logger

or take a child of it for per-module names:
    from core.logger import get_logger
    log = get_logger(__name__)
"""

import configparser as _cp
import logging
import logging.config
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
# project root: backend/core/logger.py  →  ../../
_PROJECT_ROOT  = Path(__file__).resolve().parent.parent.parent
_LOG_DIR       = _PROJECT_ROOT / "log"
_LOG_FILE      = _LOG_DIR / "app.log"
_LOGGING_CONF  = _PROJECT_ROOT / "etc" / "logging.conf"

_ROOT_NAME = "accounts"


def _configure() -> None:
    # logging.conf uses %(log_file)s as a placeholder for the real path.
    # RawConfigParser is required: the format strings contain %(asctime)s
    # etc. which ConfigParser would try to interpolate.
    _LOG_DIR.mkdir(exist_ok=True)
    raw = _LOGGING_CONF.read_text(encoding="utf-8")
    raw = raw.replace("%(log_file)s", _LOG_FILE.as_posix())

    parser = _cp.RawConfigParser()
    parser.read_string(raw)
    logging.config.fileConfig(parser, disable_existing_loggers=False)


if _LOGGING_CONF.is_file():
    _configure()
else:
    # Installed without the etc/ tree: fall back to a plain stderr handler.
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

# ---------------------------------------------------------------------------
# Module-level handle
# ---------------------------------------------------------------------------
logger = logging.getLogger(_ROOT_NAME)


def get_logger(name: str) -> logging.Logger:
    """Return a child of the ``accounts`` logger, e.g. ``accounts.store``."""
    short = name.rsplit(".", 1)[-1]
    return logger.getChild(short)
