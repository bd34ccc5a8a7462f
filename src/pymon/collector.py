"""Per-tick sample collection for pymon."""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from pymon import probes
from pymon.models import Network, Snapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RateState:
    """Cumulative network counters of the previous tick and the rate derived from them."""

    bytes_recv: int
    bytes_sent: int
    timestamp: float
    down: int = 0
    up: int = 0


def compute_rate(previous: int, current: int, elapsed: float) -> int | None:
    """
    Bytes per second between two cumulative counter readings.

    Returns None when no clock advance was measured, so the caller keeps its
    previous rate. A counter that went backwards (interface reset) reads 0.
    """
    if not elapsed > 0:
        return None
    delta = current - previous
    if delta <= 0:
        return 0
    rate = delta / elapsed
    if not math.isfinite(rate):
        return None
    return int(rate)


class Collector:
    """
    Orchestrates every probe once per tick and packages the result.

    Owns the only piece of derived state, the network RateState. Not thread
    safe; MonitorState serializes access.
    """

    def __init__(
        self,
        gpu_probe: probes.GpuProbe,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gpu_probe = gpu_probe
        self._clock = clock
        self._last_timestamp: float | None = None
        self._core_count: int | None = None

        probes.prime_cpu_percent()
        self._rate: RateState | None = None
        counters = probes.read_network_counters()
        if counters is not None:
            received, sent = counters
            self._rate = RateState(bytes_recv=received, bytes_sent=sent, timestamp=clock())

    @property
    def network_rate(self) -> Network:
        """The most recently computed network rate."""
        if self._rate is None:
            return Network()
        return Network(down=self._rate.down, up=self._rate.up)

    def sample_all(self) -> Snapshot:
        """Read all probes and return one Snapshot."""
        cpus = probes.read_cpu_cores()
        self._check_core_count(len(cpus))
        process_count, disk = probes.read_process_table()
        mem, mem_max = probes.read_memory()
        gpus = self._gpu_probe.read()
        up_time = probes.read_uptime()

        now = self._clock()
        network = self._update_network(now)

        return Snapshot(
            timestamp=self._next_timestamp(now),
            cpus=tuple(cpus),
            mem=mem,
            mem_max=mem_max,
            disk=disk,
            gpus=gpus,
            up_time=up_time,
            processes=process_count,
            network=network,
        )

    def _check_core_count(self, count: int) -> None:
        # Charts assume a fixed core count; report a change but keep sampling.
        # An empty list is a failed read, not a change.
        if count == 0:
            return
        if self._core_count is None:
            self._core_count = count
        elif count != self._core_count:
            logger.warning("Core count changed from %d to %d", self._core_count, count)
            self._core_count = count

    def _update_network(self, now: float) -> Network:
        counters = probes.read_network_counters()
        if counters is None:
            # Failed read: zero for this tick, keep the baseline for the next
            return Network()
        received, sent = counters

        if self._rate is None:
            # No baseline yet; this tick only establishes one
            self._rate = RateState(bytes_recv=received, bytes_sent=sent, timestamp=now)
            return Network()

        elapsed = now - self._rate.timestamp

        down = compute_rate(self._rate.bytes_recv, received, elapsed)
        up = compute_rate(self._rate.bytes_sent, sent, elapsed)
        if down is None or up is None:
            logger.debug("No clock advance since last tick (%.6fs); keeping previous rate", elapsed)
            return self.network_rate

        self._rate = RateState(
            bytes_recv=received,
            bytes_sent=sent,
            timestamp=now,
            down=down,
            up=up,
        )
        return Network(down=down, up=up)

    def _next_timestamp(self, now: float) -> float:
        # Keep timestamps strictly increasing even if the clock did not advance
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = math.nextafter(self._last_timestamp, math.inf)
        self._last_timestamp = now
        return now
