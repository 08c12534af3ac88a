"""pytree - display the process table as a tree."""

from pytree.config import VERSION

__version__ = VERSION
