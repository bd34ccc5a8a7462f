"""Shared fixtures for pymon tests."""

import pytest

from pymon import probes
from pymon.models import CpuCore, Disk, Gpu, Network, Snapshot


def make_snapshot(timestamp: float, **overrides) -> Snapshot:
    """Build a Snapshot with plausible defaults."""
    fields = {
        "timestamp": timestamp,
        "cpus": (CpuCore(usage=10.0, freq=2000), CpuCore(usage=30.0, freq=3000)),
        "mem": 8 * 1024**3,
        "mem_max": 16 * 1024**3,
        "disk": Disk(read_bytes=1000, writen_bytes=2000),
        "gpus": (),
        "up_time": 3600.0,
        "processes": 100,
        "network": Network(down=0, up=0),
    }
    fields.update(overrides)
    return Snapshot(**fields)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGpuProbe:
    """GPU probe double returning fixed readings."""

    def __init__(self, gpus: tuple[Gpu, ...] = ()) -> None:
        self.gpus = gpus

    @property
    def count(self) -> int:
        return len(self.gpus)

    @property
    def names(self) -> list[str]:
        return [f"Fake GPU {i}" for i in range(len(self.gpus))]

    def read(self) -> tuple[Gpu, ...]:
        return self.gpus

    def close(self) -> None:
        pass


class FakeCounters:
    """Mutable cumulative network counters; set `failing` to simulate a failed read."""

    def __init__(self, received: int = 0, sent: int = 0) -> None:
        self.received = received
        self.sent = sent
        self.failing = False

    def __call__(self) -> tuple[int, int] | None:
        if self.failing:
            return None
        return self.received, self.sent


@pytest.fixture
def net_counters(monkeypatch) -> FakeCounters:
    """Replace every host probe with deterministic fakes; returns the network counters."""
    counters = FakeCounters(received=1_000, sent=500)
    monkeypatch.setattr(probes, "prime_cpu_percent", lambda: None)
    monkeypatch.setattr(
        probes,
        "read_cpu_cores",
        lambda: [CpuCore(usage=25.0, freq=2400), CpuCore(usage=75.0, freq=3600)],
    )
    monkeypatch.setattr(
        probes,
        "read_process_table",
        lambda: (42, Disk(read_bytes=4096, writen_bytes=8192)),
    )
    monkeypatch.setattr(probes, "read_memory", lambda: (4 * 1024**3, 16 * 1024**3))
    monkeypatch.setattr(probes, "read_uptime", lambda: 7200.0)
    monkeypatch.setattr(probes, "read_network_counters", counters)
    return counters


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
