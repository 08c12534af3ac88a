"""Verification Test: Chaos Monkey - Random process termination resilience.

- Randomly terminate dummy processes while the monitor is running
- Ensure sampling never crashes and every snapshot still builds a tree
"""

import io
import multiprocessing
import os
import random
import time
from queue import Empty, Queue

import pytest

from pytree.forest import ProcessForest
from pytree.models import RenderOptions
from pytree.monitor import TreeMonitor, TreeSnapshot, collect_records
from pytree.render import TreeRenderer


def dummy_worker(duration: float = 60.0) -> None:
    """A dummy worker process that sleeps for a given duration."""
    try:
        time.sleep(duration)
    except (KeyboardInterrupt, SystemExit):
        pass


def render_snapshot(snapshot: TreeSnapshot) -> str:
    forest = ProcessForest()
    forest.add_records(snapshot.records)
    out = io.StringIO()
    renderer = TreeRenderer(RenderOptions(truncate=False), out=out)
    for root in forest.roots():
        renderer.render(root)
    return out.getvalue()


class TestChaosMonkey:
    """Chaos Monkey verification suite tests."""

    def test_monitor_survives_process_termination(self):
        """
        Test that sampling doesn't crash when processes die mid-poll.

        Processes can terminate at any time during a sample; the monitor
        must skip them and keep producing renderable snapshots.
        """
        processes = []
        for _ in range(20):
            p = multiprocessing.Process(target=dummy_worker, args=(60.0,))
            p.start()
            processes.append(p)

        queue: Queue[TreeSnapshot] = Queue()
        monitor = TreeMonitor(queue, poll_rate=0.2, with_args=True)

        try:
            monitor.start()
            assert queue.get(timeout=5.0) is not None

            for p in random.sample(processes, 10):
                if p.is_alive():
                    p.terminate()
                time.sleep(0.05)

            snapshots_after_chaos = 0
            start_time = time.time()
            while time.time() - start_time < 3.0:
                try:
                    snapshot = queue.get(timeout=1.0)
                except Empty:
                    continue
                snapshots_after_chaos += 1
                assert render_snapshot(snapshot)

            assert snapshots_after_chaos >= 3, (
                f"Expected at least 3 snapshots after chaos, got {snapshots_after_chaos}"
            )
            assert monitor.is_running, "Monitor should still be running after chaos"

        finally:
            monitor.stop()
            for p in processes:
                if p.is_alive():
                    p.terminate()
            for p in processes:
                p.join(timeout=1.0)

    def test_spawned_children_appear_under_us(self):
        """Test live children are placed below the current process."""
        processes = [multiprocessing.Process(target=dummy_worker, args=(30.0,)) for _ in range(3)]
        for p in processes:
            p.start()

        try:
            forest = ProcessForest()
            forest.add_records(collect_records())
            me = forest.find(os.getpid())

            assert me is not None
            child_pids = {child.pid for child in me.children}
            assert {p.pid for p in processes} <= child_pids
        finally:
            for p in processes:
                p.terminate()
            for p in processes:
                p.join(timeout=1.0)

    def test_collect_records_handles_terminated_process(self):
        """Test sampling right after a process exits does not raise."""
        p = multiprocessing.Process(target=dummy_worker, args=(60.0,))
        p.start()
        time.sleep(0.1)
        p.terminate()

        try:
            records = collect_records(with_args=True)
            assert isinstance(records, list)
        except Exception as e:
            pytest.fail(f"collect_records raised an exception: {e}")
        finally:
            p.join(timeout=1.0)
