"""Human-readable formatting helpers."""

from pymon.models import Snapshot

BYTE_UNITS = ["B", "KiB", "MiB", "GiB", "TiB"]
DURATION_UNITS = ["s", "min", "h"]

GIB = 1024**3


def format_bytes(size: int | float) -> str:
    """Format bytes with binary units, stopping at TiB."""
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(BYTE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {BYTE_UNITS[unit]}"


def format_duration(seconds: int | float) -> str:
    """Format a duration in whole seconds, minutes or hours, stopping at hours."""
    value = int(seconds)
    unit = 0
    while value >= 60 and unit < len(DURATION_UNITS) - 1:
        value //= 60
        unit += 1
    return f"{value} {DURATION_UNITS[unit]}"


def format_rate(bytes_per_second: int | float) -> str:
    return f"{format_bytes(bytes_per_second)}/s"


def cpu_summary(snapshot: Snapshot) -> tuple[float, float]:
    """Mean core usage in percent and mean core frequency in GHz."""
    cores = snapshot.cpus
    if not cores:
        return 0.0, 0.0
    usage = sum(core.usage for core in cores) / len(cores)
    freq_mhz = sum(core.freq for core in cores) // len(cores)
    return usage, freq_mhz / 1000.0


def memory_summary(snapshot: Snapshot) -> tuple[float, float, float]:
    """Used and total memory in GiB, and used percentage."""
    used = snapshot.mem / GIB
    total = snapshot.mem_max / GIB
    percent = used / total * 100.0 if total > 0 else 0.0
    return used, total, percent
