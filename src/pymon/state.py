"""Guarded monitor state shared between the sampler and the presentation layer."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from pymon.collector import Collector
from pymon.errors import StatePoisonedError
from pymon.history import DEFAULT_RETENTION, History, window
from pymon.models import Snapshot, SystemInfo
from pymon.probes import GpuProbe, collect_system_info

logger = logging.getLogger(__name__)


class MonitorState:
    """
    Exclusive-access wrapper around the Collector and its History.

    Every sample and every history read happens under one lock, so ticks
    never interleave and readers never see a half-appended history. If an
    exception escapes a locked section the state is poisoned: that call and
    every later one raise StatePoisonedError.
    """

    def __init__(self, collector: Collector, sys_info: SystemInfo, history: History) -> None:
        self._collector = collector
        self._sys_info = sys_info
        self._history = history
        self._lock = threading.Lock()
        self._poisoned: BaseException | None = None
        self._gpu_probe: GpuProbe | None = None

    @classmethod
    def create(cls, retention: int = DEFAULT_RETENTION) -> "MonitorState":
        """Open the hardware probes and build a state ready for sampling."""
        gpu_probe = GpuProbe()
        gpu_probe.open()
        sys_info = collect_system_info(gpu_probe)
        logger.info(
            "Monitoring %s (%d logical cores, %d GPUs)",
            sys_info.cpu_brand,
            sys_info.cpu_core_count,
            sys_info.gpu_count,
        )
        state = cls(Collector(gpu_probe), sys_info, History(retention))
        state._gpu_probe = gpu_probe
        return state

    @property
    def poisoned(self) -> bool:
        """Whether a failure has left the state unusable."""
        return self._poisoned is not None

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        with self._lock:
            if self._poisoned is not None:
                raise StatePoisonedError(self._poisoned)
            try:
                yield
            except BaseException as exc:
                self._poisoned = exc
                logger.critical("Monitor state poisoned by %s: %s", type(exc).__name__, exc)
                raise StatePoisonedError(exc) from exc

    def get_stats(self) -> Snapshot:
        """Take a fresh sample, append it to the history and return it."""
        with self._exclusive():
            snapshot = self._collector.sample_all()
            self._history.append(snapshot)
        return snapshot

    def get_sys_info(self) -> SystemInfo:
        """Static hardware identity captured at startup."""
        if self._poisoned is not None:
            raise StatePoisonedError(self._poisoned)
        return self._sys_info

    def window(self, lookback_seconds: int, point_budget: int) -> list[Snapshot]:
        """Decimated view of the last `lookback_seconds` of history."""
        if lookback_seconds <= 0 or point_budget <= 0:
            raise ValueError(
                f"lookback_seconds and point_budget must be positive, "
                f"got {lookback_seconds} and {point_budget}"
            )
        with self._exclusive():
            return window(self._history, lookback_seconds, point_budget)

    def latest(self) -> Snapshot | None:
        """The most recent snapshot, if any."""
        with self._exclusive():
            return self._history.latest()

    def history_len(self) -> int:
        """Number of retained snapshots."""
        with self._exclusive():
            return len(self._history)

    def close(self) -> None:
        """Release hardware probes opened by create()."""
        if self._gpu_probe is not None:
            self._gpu_probe.close()
            self._gpu_probe = None
