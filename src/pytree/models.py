"""Data models for pytree."""

from dataclasses import dataclass
from enum import Enum

from pytree.config import DEFAULT_WIDTH, MAX_DEPTH


class SortMode(Enum):
    """Order of siblings in the tree."""

    NAME = "name"  # name, then owner
    PID = "pid"


class SymbolSet(Enum):
    """Glyphs used to draw tree connectors."""

    ASCII = "ascii"
    UTF8 = "utf8"
    VT100 = "vt100"


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable sample of one process table entry."""

    pid: int
    ppid: int  # 0 means no parent
    name: str
    uid: int
    args: tuple[str, ...] | None = None  # None: swapped or unavailable


@dataclass(slots=True)
class RenderOptions:
    """Settings for one rendering of the tree."""

    compact: bool = True
    show_arguments: bool = False
    show_pids: bool = False
    show_owner_transitions: bool = False
    sort_mode: SortMode = SortMode.NAME
    truncate: bool = True
    width: int = DEFAULT_WIDTH
    symbol_set: SymbolSet = SymbolSet.ASCII
    highlight_pid: int | None = None
    filter_owner: int | None = None
    max_depth: int = MAX_DEPTH
