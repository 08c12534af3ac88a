"""Exceptions raised by pytree.

Expected conditions (missing parents, owners with no processes) are not
errors; only conditions that abort a run are modelled here.
"""


class PytreeError(Exception):
    """Base exception for all pytree failures."""

    pass


class MaxDepthExceeded(PytreeError):
    """Raised when the tree is too deep to render."""

    def __init__(self, max_depth: int) -> None:
        super().__init__(f"MAX_DEPTH not big enough ({max_depth}).")
        self.max_depth = max_depth


class TerminalCapabilityError(PytreeError):
    """Raised when highlighting is requested but the terminal can't do it."""

    pass


class ProcessTableError(PytreeError):
    """Raised when the process table is empty or unreadable."""

    pass
