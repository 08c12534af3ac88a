"""
pytree - Logging Configuration

Provides the package logger. Modules log through
``logging.getLogger(__name__)`` and inherit this configuration.
"""

import logging
import os

LOG_LEVEL = os.environ.get("PYTREE_LOG_LEVEL", "WARNING").upper()

# ── Create the logger ───────────────────────────────────────
logger = logging.getLogger("pytree")
logger.setLevel(getattr(logging, LOG_LEVEL, logging.WARNING))

# ── Console handler (stderr) ────────────────────────────────
_handler = logging.StreamHandler()
_formatter = logging.Formatter(
    "[%(asctime)s] [%(levelname)-5s] [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
_handler.setFormatter(_formatter)
logger.addHandler(_handler)

# Tree output goes to stdout; keep log records out of the root logger
logger.propagate = False


def set_level(level: int) -> None:
    """Change the level of the package logger."""
    logger.setLevel(level)
