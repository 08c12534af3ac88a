"""Process forest built from sampled process records."""

import bisect
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from pytree.models import ProcessRecord, SortMode

logger = logging.getLogger(__name__)

ROOT_PID = 0
PLACEHOLDER_NAME = "?"


@dataclass(slots=True, eq=False)
class ProcessNode:
    """
    One process in the forest.

    A node created for a parent that has not been seen yet is ``synthetic``
    until its own record arrives. ``parent`` is only used to walk towards
    the root; children are owned through ``children``.
    """

    pid: int
    name: str = PLACEHOLDER_NAME
    owner: int = 0
    args: tuple[str, ...] | None = None
    synthetic: bool = True
    highlighted: bool = False
    parent: "ProcessNode | None" = field(default=None, repr=False)
    children: list["ProcessNode"] = field(default_factory=list, repr=False)

    def ancestors(self) -> Iterator["ProcessNode"]:
        """Yield this node and every ancestor up to its root."""
        node: ProcessNode | None = self
        while node is not None:
            yield node
            node = node.parent


class ProcessForest:
    """
    Forest of process trees with sorted child lists.

    Records may arrive in any order. Parents referenced before their own
    record get a placeholder node which is filled in later. Children are
    kept sorted by ordered insertion using the sort mode chosen at
    construction time.
    """

    def __init__(self, sort_mode: SortMode = SortMode.NAME) -> None:
        """
        Initialize an empty forest.

        Args:
            sort_mode: Sibling order, by name then owner or by pid.
        """
        self._sort_mode = sort_mode
        self._nodes: dict[int, ProcessNode] = {}

    @property
    def sort_mode(self) -> SortMode:
        """Get the sibling sort mode."""
        return self._sort_mode

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, pid: object) -> bool:
        return pid in self._nodes

    def __iter__(self) -> Iterator[ProcessNode]:
        return iter(self._nodes.values())

    def _sort_key(self, node: ProcessNode) -> tuple:
        if self._sort_mode is SortMode.PID:
            return (node.pid,)
        return (node.name, node.owner)

    def find(self, pid: int) -> ProcessNode | None:
        """Return the node for ``pid`` or None."""
        return self._nodes.get(pid)

    def _get_or_create(self, pid: int) -> ProcessNode:
        node = self._nodes.get(pid)
        if node is None:
            node = ProcessNode(pid=pid)
            self._nodes[pid] = node
        return node

    def insert(
        self,
        pid: int,
        ppid: int,
        name: str,
        owner: int,
        args: tuple[str, ...] | None = None,
    ) -> ProcessNode:
        """
        Insert or update the process ``pid``.

        An already attached node is updated in place and keeps its position
        among its siblings. A self-parenting record is attached to the
        synthetic root.
        """
        node = self._get_or_create(pid)
        node.name = name
        node.owner = owner
        node.args = args
        node.synthetic = False
        if node.parent is not None:
            return node

        if ppid == pid:
            ppid = ROOT_PID
        if pid == ROOT_PID:
            # The root has nothing above it
            return node

        parent = self._get_or_create(ppid)
        if any(ancestor is node for ancestor in parent.ancestors()):
            logger.debug("pid %d would become its own ancestor, re-rooting", pid)
            parent = self._get_or_create(ROOT_PID)
        bisect.insort(parent.children, node, key=self._sort_key)
        node.parent = parent
        return node

    def add_records(self, records: Iterable[ProcessRecord]) -> int:
        """
        Insert every well-formed record.

        Malformed records are skipped. Returns the number inserted.
        """
        inserted = 0
        for record in records:
            if not _is_valid(record):
                logger.debug("skipping malformed record %r", record)
                continue
            args = None if record.args is None else tuple(record.args)
            self.insert(record.pid, record.ppid, record.name, record.uid, args)
            inserted += 1
        return inserted

    def roots(self) -> list[ProcessNode]:
        """Return the parentless nodes ordered by pid."""
        return sorted(
            (node for node in self._nodes.values() if node.parent is None),
            key=lambda node: node.pid,
        )

    def highlight_path(self, pid: int) -> list[ProcessNode]:
        """
        Mark ``pid`` and all of its ancestors as highlighted.

        Marks from a previous call are cleared first. Returns the marked
        nodes from the target up to the root; empty if ``pid`` is unknown.
        """
        for node in self._nodes.values():
            node.highlighted = False
        target = self._nodes.get(pid)
        if target is None:
            return []
        path = list(target.ancestors())
        for node in path:
            node.highlighted = True
        return path


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_valid(record: object) -> bool:
    """Check that a record has every field with a usable type."""
    try:
        pid = record.pid
        ppid = record.ppid
        name = record.name
        uid = record.uid
        args = record.args
    except AttributeError:
        return False
    if not (_is_int(pid) and _is_int(ppid) and _is_int(uid)):
        return False
    if pid < 1 or ppid < 0 or not isinstance(name, str):
        return False
    if args is None:
        return True
    return isinstance(args, (tuple, list)) and all(isinstance(arg, str) for arg in args)
