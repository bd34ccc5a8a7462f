"""
Hardware probes for pymon.

Each probe reads one domain (CPU, memory, disk, network, GPU, process table,
uptime) and returns a best-effort reading. Missing hardware, permissions or a
failed read degrade that domain to zero, empty or None for the tick; nothing
in here raises for an absent capability or a transient OS error.
"""

import logging
import os
import platform
import subprocess
import time
from glob import glob

import psutil
import pynvml

from pymon.models import CpuCore, Disk, Gpu, SystemInfo

logger = logging.getLogger(__name__)

_SYSFS_CACHE_GLOB = "/sys/devices/system/cpu/cpu0/cache/index*"

# psutil only offers per-process I/O counters on some platforms
_HAS_PROCESS_IO = hasattr(psutil.Process, "io_counters")

# Failures of a single read; the domain reads zero for this tick
_READ_ERRORS = (OSError, psutil.Error)


def prime_cpu_percent() -> None:
    """Prime psutil's CPU counters (the first call always reports 0.0)."""
    try:
        psutil.cpu_percent(percpu=True)
    except _READ_ERRORS as exc:
        logger.debug("Could not prime CPU counters: %s", exc)


def read_cpu_cores() -> list[CpuCore]:
    """Per-core usage (percent since the previous call) and frequency in MHz."""
    try:
        usages = psutil.cpu_percent(percpu=True)
    except _READ_ERRORS as exc:
        logger.debug("CPU usage unavailable: %s", exc)
        return []
    freqs = _read_cpu_freqs()

    if len(freqs) == len(usages):
        per_core = freqs
    elif len(freqs) == 1:
        # Some platforms only report one package-wide frequency
        per_core = freqs * len(usages)
    else:
        per_core = [0] * len(usages)

    return [CpuCore(usage=float(usage), freq=freq) for usage, freq in zip(usages, per_core)]


def _read_cpu_freqs() -> list[int]:
    try:
        freqs = psutil.cpu_freq(percpu=True)
    except (NotImplementedError, OSError, psutil.Error) as exc:
        logger.debug("CPU frequency unavailable: %s", exc)
        return []
    if not freqs:
        return []
    return [int(freq.current) for freq in freqs]


def read_memory() -> tuple[int, int]:
    """Return (used, total) memory in bytes."""
    try:
        mem = psutil.virtual_memory()
    except _READ_ERRORS as exc:
        logger.debug("Memory reading unavailable: %s", exc)
        return 0, 0
    return mem.used, mem.total


def read_process_table() -> tuple[int, Disk]:
    """
    Walk the process table once.

    Returns the number of visible processes and the sum of their lifetime
    read/write byte counters. The disk figures are running totals, not
    deltas. Processes that vanish mid-walk or deny access are skipped; if the
    table itself cannot be walked the tick reads no processes and no I/O.
    """
    attrs = ["pid", "io_counters"] if _HAS_PROCESS_IO else ["pid"]
    count = 0
    read_bytes = 0
    written_bytes = 0

    try:
        for proc in psutil.process_iter(attrs=attrs):
            try:
                info = proc.info
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

            count += 1
            io = info.get("io_counters")
            if io is not None:
                read_bytes += io.read_bytes
                written_bytes += io.write_bytes
    except _READ_ERRORS as exc:
        logger.debug("Process table unavailable: %s", exc)
        return 0, Disk()

    return count, Disk(read_bytes=read_bytes, writen_bytes=written_bytes)


def read_network_counters() -> tuple[int, int] | None:
    """
    Cumulative (received, transmitted) bytes across all interfaces.

    None when the counters cannot be read this tick.
    """
    try:
        counters = psutil.net_io_counters(pernic=True)
    except _READ_ERRORS as exc:
        logger.debug("Network counters unavailable: %s", exc)
        return None

    received = 0
    sent = 0
    for nic in counters.values():
        received += nic.bytes_recv
        sent += nic.bytes_sent
    return received, sent


def read_uptime() -> float:
    """Seconds since boot."""
    try:
        boot = psutil.boot_time()
    except _READ_ERRORS as exc:
        logger.debug("Boot time unavailable: %s", exc)
        return 0.0
    return max(0.0, time.time() - boot)


class GpuProbe:
    """
    NVIDIA GPU probe backed by NVML.

    If NVML cannot be initialised the probe stays unavailable for the whole
    process lifetime and reports no GPUs at all.
    """

    def __init__(self) -> None:
        self._handles: list = []
        self._names: list[str] = []
        self._available = False

    @property
    def available(self) -> bool:
        """Whether NVML initialised successfully."""
        return self._available

    @property
    def count(self) -> int:
        """Number of GPUs found at startup."""
        return len(self._handles)

    @property
    def names(self) -> list[str]:
        """GPU names in index order."""
        return list(self._names)

    def open(self) -> None:
        """Initialise NVML and enumerate devices."""
        if self._available:
            return
        try:
            pynvml.nvmlInit()
        except pynvml.NVMLError as exc:
            logger.info("GPU telemetry unavailable: %s", exc)
            return

        self._available = True
        try:
            device_count = pynvml.nvmlDeviceGetCount()
        except pynvml.NVMLError as exc:
            logger.warning("Could not count GPUs: %s", exc)
            device_count = 0

        for index in range(device_count):
            try:
                handle = pynvml.nvmlDeviceGetHandleByIndex(index)
            except pynvml.NVMLError as exc:
                logger.warning("Could not open GPU %d: %s", index, exc)
                handle = None
            self._handles.append(handle)
            self._names.append(self._read_name(handle, index))

    @staticmethod
    def _read_name(handle, index: int) -> str:
        if handle is None:
            return f"GPU {index}"
        try:
            name = pynvml.nvmlDeviceGetName(handle)
        except pynvml.NVMLError:
            return f"GPU {index}"
        if isinstance(name, bytes):
            name = name.decode(errors="ignore")
        return str(name)

    def read(self) -> tuple[Gpu, ...]:
        """Read every GPU; an unreadable GPU reports zeros for this tick."""
        if not self._available:
            return ()
        return tuple(self._read_one(index, handle) for index, handle in enumerate(self._handles))

    def _read_one(self, index: int, handle) -> Gpu:
        if handle is None:
            return Gpu(usage=0, mem=0, max_mem=0, temp=0)
        try:
            util = pynvml.nvmlDeviceGetUtilizationRates(handle)
            mem = pynvml.nvmlDeviceGetMemoryInfo(handle)
            temp = pynvml.nvmlDeviceGetTemperature(handle, pynvml.NVML_TEMPERATURE_GPU)
        except pynvml.NVMLError as exc:
            logger.debug("GPU %d read failed: %s", index, exc)
            return Gpu(usage=0, mem=0, max_mem=0, temp=0)
        return Gpu(usage=int(util.gpu), mem=int(mem.used), max_mem=int(mem.total), temp=int(temp))

    def close(self) -> None:
        """Shut NVML down."""
        if not self._available:
            return
        self._available = False
        self._handles = []
        self._names = []
        try:
            pynvml.nvmlShutdown()
        except pynvml.NVMLError as exc:
            logger.debug("NVML shutdown failed: %s", exc)


def read_cpu_brand() -> str:
    """
    Human CPU model string.

    - Linux: /proc/cpuinfo model name
    - macOS: sysctl machdep.cpu.brand_string
    - Windows: registry ProcessorNameString
    Fallback: platform.processor()/machine()
    """
    sysname = platform.system()

    if sysname == "Linux":
        try:
            with open("/proc/cpuinfo", "r", encoding="utf-8", errors="ignore") as f:
                for line in f:
                    if line.lower().startswith("model name"):
                        return line.split(":", 1)[1].strip()
        except OSError:
            pass

    elif sysname == "Darwin":
        try:
            out = subprocess.check_output(
                ["sysctl", "-n", "machdep.cpu.brand_string"], stderr=subprocess.DEVNULL
            ).decode(errors="ignore")
            if out.strip():
                return out.strip()
        except (OSError, subprocess.SubprocessError):
            pass

    elif sysname == "Windows":
        try:
            import winreg

            with winreg.OpenKey(
                winreg.HKEY_LOCAL_MACHINE,
                r"HARDWARE\DESCRIPTION\System\CentralProcessor\0",
            ) as key:
                val, _ = winreg.QueryValueEx(key, "ProcessorNameString")
                if isinstance(val, str) and val.strip():
                    return val.strip()
        except OSError:
            pass

    cpu_name = platform.processor() or platform.machine() or "CPU"
    return cpu_name.strip() or "CPU"


def _parse_cache_size(text: str) -> int | None:
    """Parse a sysfs cache size ("32K", "8M", "1024") into KiB."""
    text = text.strip().upper()
    if not text:
        return None
    multiplier = 1
    if text.endswith("K"):
        text = text[:-1]
    elif text.endswith("M"):
        text, multiplier = text[:-1], 1024
    elif text.endswith("G"):
        text, multiplier = text[:-1], 1024 * 1024
    try:
        return int(text) * multiplier
    except ValueError:
        return None


def _read_sysfs(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        return f.read().strip()


def read_cache_sizes(base_glob: str = _SYSFS_CACHE_GLOB) -> tuple[int | None, int | None, int | None]:
    """
    L1 data, L2 and L3 cache sizes in KiB.

    Only Linux exposes these through sysfs; every size the platform does not
    report is None.
    """
    l1: int | None = None
    l2: int | None = None
    l3: int | None = None

    for index_dir in sorted(glob(base_glob)):
        try:
            level = _read_sysfs(os.path.join(index_dir, "level"))
            kind = _read_sysfs(os.path.join(index_dir, "type"))
            size = _parse_cache_size(_read_sysfs(os.path.join(index_dir, "size")))
        except OSError:
            continue

        if level == "1" and kind == "Data" and l1 is None:
            l1 = size
        elif level == "2" and l2 is None:
            l2 = size
        elif level == "3" and l3 is None:
            l3 = size

    return l1, l2, l3


def collect_system_info(gpu_probe: GpuProbe) -> SystemInfo:
    """Build the static SystemInfo record. Call once at startup."""
    cache_l1, cache_l2, cache_l3 = read_cache_sizes()
    _, total = read_memory()
    return SystemInfo(
        cpu_brand=read_cpu_brand(),
        cpu_core_count=psutil.cpu_count(logical=True) or 0,
        cache_l1=cache_l1,
        cache_l2=cache_l2,
        cache_l3=cache_l3,
        max_mem=total,
        gpu_count=gpu_probe.count,
        gpu_names=tuple(gpu_probe.names),
    )
