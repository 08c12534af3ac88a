"""Text rendering of the process forest."""

import pwd
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TextIO

from pytree.compact import compact_children
from pytree.errors import MaxDepthExceeded
from pytree.forest import ProcessForest, ProcessNode
from pytree.models import RenderOptions, SymbolSet

ARG_RESERVE = 4  # Columns kept free for "..." while more arguments follow


@dataclass(slots=True, frozen=True)
class Symbols:
    """Connector glyphs, optionally wrapped in charset switch sequences."""

    empty: str  # "  "
    branch: str  # "|-"
    vertical: str  # "| "
    last: str  # "`-"
    single: str  # "---"
    first: str  # "-+-"
    enter: str = ""
    leave: str = ""


SYMBOLS: dict[SymbolSet, Symbols] = {
    SymbolSet.ASCII: Symbols("  ", "|-", "| ", "`-", "---", "-+-"),
    SymbolSet.UTF8: Symbols(
        "  ",
        "├─",
        "│ ",
        "└─",
        "───",
        "─┬─",
    ),
    # DEC special graphics: x vertical, t tee, q horizontal, m corner, w down-tee
    SymbolSet.VT100: Symbols(
        "  ", "tq", "x ", "mq", "qqq", "qwq", enter="\033(0\017", leave="\033(B"
    ),
}


def escape(text: str) -> str:
    """
    Make a name or argument printable.

    Backslashes are doubled; spaces, control characters and every byte of a
    non-ASCII character become three-digit octal escapes.
    """
    out = []
    for char in text:
        if char == "\\":
            out.append("\\\\")
        elif " " < char <= "~":
            out.append(char)
        else:
            for byte in char.encode("utf-8", "surrogateescape"):
                out.append(f"\\{byte:03o}")
    return "".join(out)


def lookup_owner_name(uid: int) -> str:
    """Return the login name for ``uid``, or the uid itself."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


@dataclass(slots=True)
class RenderState:
    """
    Column and layout bookkeeping for one rendering pass.

    ``indents`` and ``more`` are indexed by depth: the label width used to
    indent the children of a node at that depth, and whether that node still
    has siblings below it.
    """

    width: int
    truncate: bool = True
    column: int = 1
    deferred: str = ""
    indents: list[int] = field(default_factory=list)
    more: list[bool] = field(default_factory=list)
    _line: list[str] = field(default_factory=list)

    def put(self, char: str) -> None:
        """Emit one character, honouring the width limit."""
        self.column += 1
        if self.column <= self.width or not self.truncate:
            self._line.append(char)
            return
        if self.column != self.width + 1:
            return
        if self.deferred or not char.isascii():
            self._line.append("+")
        else:
            # Decided at end of line: the char itself if nothing follows
            self.deferred = char
            self.column -= 1

    def put_text(self, text: str) -> None:
        for char in text:
            self.put(char)

    def put_raw(self, sequence: str) -> None:
        """Emit a control sequence that takes no columns."""
        self._line.append(sequence)

    def end_line(self) -> str:
        """Finish the current line and return it with its newline."""
        if self.deferred and self.column == self.width:
            self._line.append(self.deferred)
        self._line.append("\n")
        line = "".join(self._line)
        self._line.clear()
        self.deferred = ""
        self.column = 1
        return line

    def set_level(self, level: int, indent: int, more: bool) -> None:
        while len(self.indents) <= level:
            self.indents.append(0)
            self.more.append(False)
        self.indents[level] = indent
        self.more[level] = more


class TreeRenderer:
    """
    Writes process trees as indented text.

    Each call to ``render`` or ``render_by_owner`` starts from a fresh
    ``RenderState``. Lines are written to ``out`` as they are completed.
    """

    def __init__(
        self,
        options: RenderOptions,
        out: TextIO | None = None,
        emphasis: tuple[str, str] | None = None,
        owner_name: Callable[[int], str] = lookup_owner_name,
    ) -> None:
        """
        Initialize the renderer.

        Args:
            options: What to show and how wide the output may be.
            out: Stream to write to. Default sys.stdout.
            emphasis: Sequences that start and end highlighted text. Without
                them highlighted nodes are drawn like any other.
            owner_name: Maps a uid to the name shown on owner transitions.
        """
        self.options = options
        self._out = out if out is not None else sys.stdout
        self._emphasis = emphasis
        self._owner_name = owner_name
        self._symbols = SYMBOLS[options.symbol_set]
        self._state = RenderState(width=options.width, truncate=options.truncate)
        self._highlight = True

    @property
    def compacting(self) -> bool:
        """Whether identical siblings are folded together."""
        opts = self.options
        # Pids make every subtree distinct; arguments put each child on its own line
        return opts.compact and not (opts.show_pids or opts.show_arguments)

    def _reset(self) -> None:
        self._state = RenderState(width=self.options.width, truncate=self.options.truncate)

    def render(self, root: ProcessNode) -> None:
        """Write the tree below ``root``."""
        self._reset()
        self._highlight = True
        self._dump(root, 0, 1, True, True, 0, 0)

    def render_by_owner(self, forest: ProcessForest, owner: int) -> int:
        """
        Write one tree for each process owned by ``owner``.

        Trees are separated by a blank line and are not highlighted. A
        matching process below another matching process gets its own tree
        as well. Returns the number of trees written.
        """
        self._reset()
        self._highlight = False
        dumped = 0
        stack = list(reversed(forest.roots()))
        while stack:
            node = stack.pop()
            if not node.synthetic and node.owner == owner:
                if dumped:
                    self._out.write("\n")
                self._dump(node, 0, 1, True, True, owner, 0)
                dumped += 1
            stack.extend(reversed(node.children))
        return dumped

    def _glyph(self, glyph: str) -> None:
        state = self._state
        if self._symbols.enter:
            state.put_raw(self._symbols.enter)
        state.put_text(glyph)
        if self._symbols.leave:
            state.put_raw(self._symbols.leave)

    def _newline(self) -> None:
        self._out.write(self._state.end_line())

    def _dump(
        self,
        node: ProcessNode,
        level: int,
        rep: int,
        leaf: bool,
        last: bool,
        prev_owner: int,
        closing: int,
    ) -> None:
        # leaf: drawn on the same line as its parent, no connector prefix
        opts = self.options
        state = self._state
        sym = self._symbols
        if level >= opts.max_depth - 1:
            raise MaxDepthExceeded(opts.max_depth)

        if not leaf:
            for lvl in range(level):
                state.put_text(" " * (state.indents[lvl] + 1))
                if lvl == level - 1:
                    self._glyph(sym.last if last else sym.branch)
                else:
                    self._glyph(sym.vertical if state.more[lvl + 1] else sym.empty)

        add = 0
        if rep >= 2:
            prefix = f"{rep}*["
            state.put_text(prefix)
            add = len(prefix)

        emphasis = self._emphasis if (self._highlight and node.highlighted) else None
        if emphasis:
            state.put_raw(emphasis[0])
        swapped = opts.show_arguments and node.args is None
        if swapped:
            state.put("(")
        name = escape(node.name)
        state.put_text(name)
        offset = state.column

        fields = []
        if opts.show_pids:
            fields.append(str(node.pid))
        if opts.show_owner_transitions and node.owner != prev_owner:
            fields.append(self._owner_name(node.owner))
        separated = opts.show_arguments
        for text in fields:
            state.put("," if separated else "(")
            separated = True
            state.put_text(text)
        if swapped or (fields and not opts.show_arguments):
            state.put(")")
        if emphasis:
            state.put_raw(emphasis[1])

        if opts.show_arguments:
            self._put_args(node.args or ())

        children = node.children
        if opts.show_arguments or not children:
            state.put_text("]" * closing)
            self._newline()
            if opts.show_arguments:
                state.set_level(level, 1 if len(name) > 1 else 0, not last)
                for index, child in enumerate(children):
                    self._dump(
                        child, level + 1, 1, False, index == len(children) - 1, node.owner, 0
                    )
            return

        state.set_level(level, len(name) + state.column - offset + add, not last)
        if opts.truncate and state.column >= opts.width:
            self._glyph(sym.first)
            state.put("+")
            self._newline()
            return

        if self.compacting:
            groups = compact_children(children, opts.show_owner_transitions)
        else:
            groups = [(child, 1) for child in children]
        for index, (child, count) in enumerate(groups):
            is_last = index == len(groups) - 1
            if index == 0:
                self._glyph(sym.single if is_last else sym.first)
            # Only the last child closes the brackets opened above it
            child_closing = (closing if is_last else 0) + (1 if count > 1 else 0)
            self._dump(child, level + 1, count, index == 0, is_last, node.owner, child_closing)

    def _put_args(self, args: tuple[str, ...]) -> None:
        state = self._state
        opts = self.options
        for index, arg in enumerate(args):
            state.put(" ")
            text = escape(arg)
            reserve = 0 if index == len(args) - 1 else ARG_RESERVE
            if not opts.truncate or state.column + len(text) <= opts.width - reserve:
                state.put_text(text)
            else:
                state.put_text("...")
                break
