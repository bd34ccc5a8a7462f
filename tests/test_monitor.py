"""Tests for the SystemMonitor sampler."""

import time
from queue import Empty, Queue

import pytest

from conftest import FakeGpuProbe
from pymon.collector import Collector
from pymon.errors import StatePoisonedError
from pymon.history import History
from pymon.models import Snapshot, SystemInfo
from pymon.monitor import SystemMonitor
from pymon.state import MonitorState


@pytest.fixture
def live_state():
    state = MonitorState.create(retention=100)
    yield state
    state.close()


class BrokenCollector:
    """Collector double that always fails."""

    def sample_all(self):
        raise RuntimeError("sensor bus gone")


class TestSystemMonitor:
    """Tests for SystemMonitor class."""

    def test_monitor_creation(self, live_state):
        """Test SystemMonitor can be instantiated."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(live_state, queue)

        assert monitor.interval == 1.0
        assert not monitor.is_running
        assert monitor.failure is None

    def test_monitor_custom_interval(self, live_state):
        """Test SystemMonitor with custom interval."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(live_state, queue, interval=2.0)

        assert monitor.interval == 2.0

    def test_interval_minimum(self, live_state):
        """Test interval has a minimum value."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(live_state, queue)

        monitor.interval = 0.01  # Very small value
        assert monitor.interval >= 0.1  # Should be clamped to minimum

    def test_monitor_start_stop(self, live_state):
        """Test SystemMonitor can be started and stopped."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(live_state, queue, interval=0.1)

        assert not monitor.is_running

        monitor.start()
        assert monitor.is_running

        monitor.stop()
        assert not monitor.is_running

    def test_monitor_start_idempotent(self, live_state):
        """Test starting an already running monitor is safe."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(live_state, queue, interval=0.1)

        monitor.start()
        thread1 = monitor._thread

        monitor.start()  # Should not create a new thread
        thread2 = monitor._thread

        assert thread1 is thread2
        monitor.stop()

    def test_monitor_collects_data(self, live_state):
        """Test SystemMonitor samples into the history and queues snapshots."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(live_state, queue, interval=0.1)

        monitor.start()

        try:
            snapshot = queue.get(timeout=2.0)
            assert isinstance(snapshot, Snapshot)
            assert len(snapshot.cpus) > 0
            assert snapshot.mem_max > 0
            assert snapshot.processes > 0
            assert live_state.history_len() >= 1
        finally:
            monitor.stop()

    def test_monitor_ticks_in_order(self, live_state):
        """Test consecutive ticks are chronologically ordered."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(live_state, queue, interval=0.1)

        monitor.start()

        try:
            snapshot1 = queue.get(timeout=2.0)
            snapshot2 = queue.get(timeout=2.0)
            snapshot3 = queue.get(timeout=2.0)

            assert snapshot1.timestamp < snapshot2.timestamp < snapshot3.timestamp
        finally:
            monitor.stop()

    def test_daemon_thread(self, live_state):
        """Test monitor thread is a daemon thread."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(live_state, queue, interval=0.1)

        monitor.start()

        try:
            assert monitor._thread is not None
            assert monitor._thread.daemon is True
            assert monitor._thread.name == "SystemMonitor"
        finally:
            monitor.stop()


class TestSamplerFailure:
    """Tests for the sampler's response to a poisoned state."""

    def test_poisoned_state_stops_sampling(self, net_counters):
        """Test the loop exits and records the failure when the state is poisoned."""
        state = MonitorState(
            BrokenCollector(),
            SystemInfo(cpu_brand="Test CPU", cpu_core_count=1),
            History(10),
        )
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(state, queue, interval=0.1)

        monitor.start()
        deadline = time.monotonic() + 2.0
        while monitor.is_running and time.monotonic() < deadline:
            time.sleep(0.05)

        assert not monitor.is_running
        assert isinstance(monitor.failure, StatePoisonedError)
        assert state.poisoned
        with pytest.raises(Empty):
            queue.get_nowait()

    def test_failed_monitor_does_not_restart(self, net_counters):
        """Test start is refused once sampling failed."""
        state = MonitorState(
            BrokenCollector(),
            SystemInfo(cpu_brand="Test CPU", cpu_core_count=1),
            History(10),
        )
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(state, queue, interval=0.1)
        monitor.start()
        monitor._thread.join(timeout=2.0)

        monitor.start()

        assert not monitor.is_running

    def test_healthy_state_keeps_running(self, net_counters):
        """Test a fake-probed state keeps sampling tick after tick."""
        state = MonitorState(
            Collector(FakeGpuProbe()),
            SystemInfo(cpu_brand="Test CPU", cpu_core_count=2),
            History(10),
        )
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(state, queue, interval=0.1)

        monitor.start()
        try:
            for _ in range(3):
                assert queue.get(timeout=2.0).processes == 42
            assert monitor.is_running
        finally:
            monitor.stop()
