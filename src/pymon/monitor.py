"""Background sampler for pymon."""

import logging
import threading
from queue import Queue

from pymon.errors import StatePoisonedError
from pymon.models import Snapshot
from pymon.state import MonitorState

logger = logging.getLogger(__name__)


class SystemMonitor:
    """
    Fixed-interval sampler driving MonitorState.get_stats().

    Runs in a separate daemon thread and pushes every new Snapshot to a
    thread-safe Queue. Ticks never overlap; a slow tick delays the next one.
    A poisoned state stops the loop for good.
    """

    def __init__(
        self,
        state: MonitorState,
        update_queue: Queue[Snapshot],
        interval: float = 1.0,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            state: Guarded state to sample into.
            update_queue: Thread-safe queue to push snapshots to.
            interval: Seconds between ticks. Default 1.0s.
        """
        self._state = state
        self._queue = update_queue
        self._interval = max(0.1, interval)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._failure: StatePoisonedError | None = None

    @property
    def interval(self) -> float:
        """Get the current tick interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the tick interval."""
        self._interval = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        """Check if the sampler thread is running."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def failure(self) -> StatePoisonedError | None:
        """The error that stopped sampling, if any."""
        return self._failure

    def start(self) -> None:
        """Start the sampler thread."""
        if self.is_running or self._failure is not None:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SystemMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the sampler thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _poll_loop(self) -> None:
        """Main sampling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                snapshot = self._state.get_stats()
            except StatePoisonedError as exc:
                logger.critical("Sampling stopped: %s", exc)
                self._failure = exc
                return
            self._queue.put(snapshot)

            # Wait for interval seconds or until stop is requested
            self._stop_event.wait(timeout=self._interval)
