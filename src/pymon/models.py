"""Data models for pymon."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class CpuCore:
    """One logical core at one tick."""

    usage: float  # 0.0 - 100.0
    freq: int  # MHz


@dataclass(slots=True, frozen=True)
class Gpu:
    """One GPU at one tick."""

    usage: int  # 0 - 100
    mem: int  # Bytes
    max_mem: int  # Bytes
    temp: int  # Celsius


@dataclass(slots=True, frozen=True)
class Disk:
    """Cumulative disk I/O summed over all visible processes."""

    read_bytes: int = 0
    writen_bytes: int = 0


@dataclass(slots=True, frozen=True)
class Network:
    """Network throughput in bytes per second."""

    down: int = 0
    up: int = 0


def _duration_to_wire(seconds: float) -> dict[str, int]:
    secs = int(seconds)
    nanos = int(round((seconds - secs) * 1_000_000_000))
    if nanos >= 1_000_000_000:
        secs += 1
        nanos -= 1_000_000_000
    return {"secs": secs, "nanos": nanos}


def _duration_from_wire(value: dict[str, int]) -> float:
    return value["secs"] + value["nanos"] / 1_000_000_000


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Immutable snapshot of one tick's readings."""

    timestamp: float  # Monotonic clock, seconds
    cpus: tuple[CpuCore, ...]
    mem: int
    mem_max: int
    disk: Disk
    gpus: tuple[Gpu, ...]
    up_time: float  # Seconds
    processes: int
    network: Network

    def to_dict(self) -> dict[str, Any]:
        """Wire payload with the stable field names."""
        return {
            "timestamp": self.timestamp,
            "cpus": [{"usage": c.usage, "freq": c.freq} for c in self.cpus],
            "mem": self.mem,
            "mem_max": self.mem_max,
            "disk": {
                "read_bytes": self.disk.read_bytes,
                "writen_bytes": self.disk.writen_bytes,
            },
            "gpus": [
                {"usage": g.usage, "mem": g.mem, "max_mem": g.max_mem, "temp": g.temp}
                for g in self.gpus
            ],
            "up_time": _duration_to_wire(self.up_time),
            "processes": self.processes,
            "network": {"down": self.network.down, "up": self.network.up},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        """Rebuild a Snapshot from its wire payload."""
        return cls(
            timestamp=data["timestamp"],
            cpus=tuple(CpuCore(**core) for core in data["cpus"]),
            mem=data["mem"],
            mem_max=data["mem_max"],
            disk=Disk(**data["disk"]),
            gpus=tuple(Gpu(**gpu) for gpu in data["gpus"]),
            up_time=_duration_from_wire(data["up_time"]),
            processes=data["processes"],
            network=Network(**data["network"]),
        )


@dataclass(slots=True, frozen=True)
class SystemInfo:
    """Static hardware identity, sampled once at startup."""

    cpu_brand: str
    cpu_core_count: int
    cache_l1: int | None = None  # L1 data cache, KiB
    cache_l2: int | None = None  # KiB
    cache_l3: int | None = None  # KiB
    max_mem: int = 0
    gpu_count: int = 0
    gpu_names: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Wire payload with the stable field names."""
        return {
            "cpu_brand": self.cpu_brand,
            "cpu_core_count": self.cpu_core_count,
            "cache_l1": self.cache_l1,
            "cache_l2": self.cache_l2,
            "cache_l3": self.cache_l3,
            "max_mem": self.max_mem,
            "gpu_count": self.gpu_count,
            "gpu_names": list(self.gpu_names),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SystemInfo":
        """Rebuild SystemInfo from its wire payload."""
        return cls(
            cpu_brand=data["cpu_brand"],
            cpu_core_count=data["cpu_core_count"],
            cache_l1=data.get("cache_l1"),
            cache_l2=data.get("cache_l2"),
            cache_l3=data.get("cache_l3"),
            max_mem=data["max_mem"],
            gpu_count=data["gpu_count"],
            gpu_names=tuple(data["gpu_names"]),
        )
