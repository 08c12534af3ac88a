"""Process table sampling for pytree."""

import logging
import threading
import time
from dataclasses import dataclass
from queue import Queue

import psutil

from pytree.config import MIN_POLL_RATE, POLL_RATE
from pytree.errors import ProcessTableError
from pytree.models import ProcessRecord

logger = logging.getLogger(__name__)

ATTRS = ["pid", "ppid", "name", "uids", "cmdline"]


def collect_records(with_args: bool = False) -> list[ProcessRecord]:
    """
    Sample every process in the process table.

    Processes that exit or deny access mid-poll are skipped. With
    ``with_args`` each record carries the command line without the program
    name; an empty or unreadable command line (kernel threads, other users'
    processes on hardened systems) is recorded as unavailable.

    Raises:
        ProcessTableError: If no process could be read at all.
    """
    records: list[ProcessRecord] = []
    attrs = ATTRS if with_args else ATTRS[:-1]

    for proc in psutil.process_iter(attrs=attrs):
        try:
            info = proc.info
            pid, ppid, name, uids = info["pid"], info.get("ppid"), info.get("name"), info.get("uids")
            if ppid is None or name is None or uids is None:
                logger.debug("incomplete data for pid %s, skipping", pid)
                continue

            args = None
            if with_args:
                cmdline = info.get("cmdline")
                args = tuple(cmdline[1:]) if cmdline else None

            records.append(
                ProcessRecord(pid=pid, ppid=ppid, name=name, uid=uids.effective, args=args)
            )
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            # Process died mid-poll or is off limits
            continue

    if not records:
        raise ProcessTableError("process table is empty (/proc not mounted?)")
    logger.debug("collected %d process records", len(records))
    return records


@dataclass(slots=True)
class TreeSnapshot:
    """Process records sampled at one point in time."""

    records: list[ProcessRecord]
    timestamp: float


class TreeMonitor:
    """
    Samples the process table in a background thread.

    Each sample is pushed to a thread-safe Queue as a TreeSnapshot. A failed
    sample is logged and the loop keeps going.
    """

    def __init__(
        self,
        update_queue: Queue[TreeSnapshot],
        poll_rate: float = POLL_RATE,
        with_args: bool = False,
    ) -> None:
        """
        Initialize the TreeMonitor.

        Args:
            update_queue: Thread-safe queue to push snapshots to.
            poll_rate: How often to sample (in seconds).
            with_args: Whether to capture command lines.
        """
        self._queue = update_queue
        self._poll_rate = max(MIN_POLL_RATE, poll_rate)
        self.with_args = with_args
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(MIN_POLL_RATE, value)

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="TreeMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                records = collect_records(with_args=self.with_args)
                self._queue.put(TreeSnapshot(records=records, timestamp=time.time()))
            except (ProcessTableError, psutil.Error) as exc:
                logger.warning("process table sample failed: %s", exc)

            # Wait for poll_rate seconds or until stop is requested
            self._stop_event.wait(timeout=self._poll_rate)
