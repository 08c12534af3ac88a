"""
pytree - Configuration

Module-level defaults; a few can be overridden from the environment.
"""

import os

VERSION = "0.3.0"

# ── Rendering ────────────────────────────────────────────────────
DEFAULT_WIDTH = 132                    # Used when stdout is not a terminal
MAX_DEPTH = int(os.environ.get("PYTREE_MAX_DEPTH", "100"))
DEFAULT_ROOT_PID = 1

# ── Interactive viewer ───────────────────────────────────────────
POLL_RATE = float(os.environ.get("PYTREE_POLL_RATE", "2.0"))
MIN_POLL_RATE = 0.1
