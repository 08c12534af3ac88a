"""Allow ``python -m pytree``."""

from pytree.cli import run

run()
