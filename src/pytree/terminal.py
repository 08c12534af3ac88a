"""Terminal capability probing: symbol set, width and emphasis."""

import curses
import locale
import logging
import os
import sys

from pytree.config import DEFAULT_WIDTH
from pytree.errors import TerminalCapabilityError
from pytree.models import SymbolSet

logger = logging.getLogger(__name__)


def _setup_terminal(term: str) -> bool:
    """Load the terminfo entry for ``term``; False if there is none."""
    opened = None
    try:
        fd = sys.__stdout__.fileno()
    except (AttributeError, OSError, ValueError):
        fd = opened = os.open(os.devnull, os.O_WRONLY)
    try:
        curses.setupterm(term, fd)
    except curses.error as exc:
        logger.debug("no terminfo entry for %r: %s", term, exc)
        return False
    finally:
        if opened is not None:
            os.close(opened)
    return True


def _capability(name: str) -> str | None:
    value = curses.tigetstr(name)
    if not value:
        return None
    return value.decode("latin-1")


def choose_symbol_set(codeset: str, term: str | None, has_acsc: bool) -> SymbolSet:
    """
    Pick the default glyphs.

    UTF-8 locales get box-drawing characters, terminals with an alternate
    character set get VT100 line drawing, everything else plain ASCII.
    """
    if codeset.upper().replace("-", "") == "UTF8":
        return SymbolSet.UTF8
    if term and has_acsc:
        return SymbolSet.VT100
    return SymbolSet.ASCII


def detect_symbol_set() -> SymbolSet:
    """Choose the symbol set from the locale and the terminal."""
    try:
        codeset = locale.nl_langinfo(locale.CODESET)
    except AttributeError:
        codeset = ""
    term = os.environ.get("TERM")
    has_acsc = bool(term) and _setup_terminal(term) and _capability("acsc") is not None
    symbol_set = choose_symbol_set(codeset, term, has_acsc)
    logger.debug("codeset=%r TERM=%r -> %s symbols", codeset, term, symbol_set.value)
    return symbol_set


def detect_width(stream=None) -> int:
    """Return the width of ``stream`` if it is a terminal, else the default."""
    stream = stream if stream is not None else sys.stdout
    try:
        columns = os.get_terminal_size(stream.fileno()).columns
    except (AttributeError, OSError, ValueError):
        return DEFAULT_WIDTH
    return columns or DEFAULT_WIDTH


def emphasis_sequences(required: bool = False) -> tuple[str, str] | None:
    """
    Return the sequences that start and end bold text.

    Args:
        required: Raise instead of returning None when the terminal
            can't be queried.

    Raises:
        TerminalCapabilityError: If ``required`` and TERM is unset or has no
            usable terminfo entry.
    """
    term = os.environ.get("TERM")
    if not term:
        if required:
            raise TerminalCapabilityError("TERM is not set")
        return None
    if not _setup_terminal(term):
        if required:
            raise TerminalCapabilityError("Can't get terminal capabilities")
        return None
    enter = _capability("bold")
    leave = _capability("sgr0")
    if enter is None or leave is None:
        logger.debug("terminal %r has no bold/sgr0", term)
        return None
    return enter, leave
