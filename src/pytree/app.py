"""pytree - Interactive Textual viewer."""

import io
from queue import Empty, Queue

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Footer, Static

from pytree.config import POLL_RATE
from pytree.errors import PytreeError
from pytree.forest import ProcessForest
from pytree.models import ProcessRecord, RenderOptions, SortMode, SymbolSet
from pytree.monitor import TreeMonitor, TreeSnapshot
from pytree.render import TreeRenderer


def render_text(records: list[ProcessRecord], options: RenderOptions, root_pid: int) -> str:
    """Build a forest from ``records`` and render it to a string."""
    forest = ProcessForest(options.sort_mode)
    forest.add_records(records)
    if options.highlight_pid is not None:
        forest.highlight_path(options.highlight_pid)

    buffer = io.StringIO()
    # No emphasis sequences: the widget displays plain text
    renderer = TreeRenderer(options, out=buffer)
    if options.filter_owner is not None:
        if not renderer.render_by_owner(forest, options.filter_owner):
            return "No processes found."
        return buffer.getvalue()

    root = forest.find(root_pid)
    if root is None:
        return f"Process {root_pid} not found."
    renderer.render(root)
    return buffer.getvalue()


class StatusBar(Static):
    """One-line summary of the current view settings."""

    DEFAULT_CSS = """
    StatusBar {
        dock: top;
        height: 1;
        background: $surface;
        padding: 0 1;
    }
    """

    def show_options(self, options: RenderOptions, process_count: int) -> None:
        flags = [
            f"sort:{options.sort_mode.value}",
            f"compact:{'on' if options.compact else 'off'}",
            f"pids:{'on' if options.show_pids else 'off'}",
            f"args:{'on' if options.show_arguments else 'off'}",
            f"users:{'on' if options.show_owner_transitions else 'off'}",
        ]
        self.update(f"{process_count} processes  " + "  ".join(flags))


class TreeView(VerticalScroll):
    """Scrollable container for the rendered tree."""

    DEFAULT_CSS = """
    TreeView {
        height: 1fr;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the tree view."""
        yield Static("Loading process table...", id="tree-text", markup=False)

    def show_tree(self, text: str) -> None:
        """Replace the displayed tree."""
        # Text, not a markup string: "2*[sh]" must stay literal
        self.query_one("#tree-text", Static).update(Text(text))


class PytreeApp(App):
    """Main pytree viewer application."""

    TITLE = "pytree"
    SUB_TITLE = "Process Tree"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("c", "toggle_compact", "Compact"),
        ("n", "toggle_sort", "Sort"),
        ("p", "toggle_pids", "PIDs"),
        ("a", "toggle_args", "Args"),
        ("u", "toggle_users", "Users"),
    ]

    def __init__(
        self,
        options: RenderOptions | None = None,
        root_pid: int = 1,
        poll_rate: float = POLL_RATE,
    ) -> None:
        """Initialize the PytreeApp."""
        super().__init__()
        self.options = options or RenderOptions(symbol_set=SymbolSet.UTF8)
        # The view scrolls horizontally, nothing to cut
        self.options.truncate = False
        self.root_pid = root_pid
        self._update_queue: Queue[TreeSnapshot] = Queue()
        self._monitor = TreeMonitor(
            self._update_queue, poll_rate=poll_rate, with_args=self.options.show_arguments
        )
        self._records: list[ProcessRecord] = []

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield StatusBar(id="status-bar")
        yield TreeView(id="tree-view")
        yield Footer()

    def on_mount(self) -> None:
        """Start the monitor when the app is mounted."""
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the queue and redraw with the most recent snapshot."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self.show_records(snapshot.records)

    def show_records(self, records: list[ProcessRecord]) -> None:
        """Render ``records`` with the current options."""
        self._records = records
        self._refresh_tree()

    def _refresh_tree(self) -> None:
        try:
            text = render_text(self._records, self.options, self.root_pid)
        except PytreeError as exc:
            text = str(exc)
        self.query_one(TreeView).show_tree(text)
        self.query_one(StatusBar).show_options(self.options, len(self._records))

    def action_toggle_compact(self) -> None:
        """Toggle folding of identical subtrees."""
        self.options.compact = not self.options.compact
        self._refresh_tree()

    def action_toggle_sort(self) -> None:
        """Switch between name and pid order."""
        self.options.sort_mode = (
            SortMode.PID if self.options.sort_mode is SortMode.NAME else SortMode.NAME
        )
        self._refresh_tree()

    def action_toggle_pids(self) -> None:
        """Toggle pid display."""
        self.options.show_pids = not self.options.show_pids
        self._refresh_tree()

    def action_toggle_args(self) -> None:
        """Toggle argument display; takes effect on the next sample."""
        self.options.show_arguments = not self.options.show_arguments
        self._monitor.with_args = self.options.show_arguments
        self._refresh_tree()

    def action_toggle_users(self) -> None:
        """Toggle owner transition display."""
        self.options.show_owner_transitions = not self.options.show_owner_transitions
        self._refresh_tree()

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()
