"""Tests for formatting helpers."""

import pytest

from conftest import make_snapshot
from pymon.formatting import cpu_summary, format_bytes, format_duration, format_rate, memory_summary
from pymon.models import CpuCore


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, "0.0 B"),
        (1023, "1023.0 B"),
        (1024, "1.0 KiB"),
        (21_372_137, "20.4 MiB"),
        (2_137_213_721_372_137, "1943.8 TiB"),
    ],
)
def test_format_bytes(size, expected):
    """Test format_bytes against known values."""
    assert format_bytes(size) == expected


def test_format_bytes_stops_at_tib():
    """Test values beyond TiB stay in TiB."""
    assert format_bytes(1024**5).endswith(" TiB")
    assert format_bytes(1024**5) == "1024.0 TiB"


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (0, "0 s"),
        (59, "59 s"),
        (60, "1 min"),
        (181, "3 min"),
        (3600, "1 h"),
        (10800, "3 h"),
        (86400, "24 h"),
    ],
)
def test_format_duration(seconds, expected):
    """Test format_duration against known values."""
    assert format_duration(seconds) == expected


def test_format_duration_accepts_float():
    """Test fractional seconds are truncated."""
    assert format_duration(59.9) == "59 s"


def test_format_rate():
    """Test format_rate appends a per-second suffix."""
    assert format_rate(2048) == "2.0 KiB/s"


class TestCpuSummary:
    """Tests for cpu_summary."""

    def test_mean_usage_and_frequency(self):
        """Test usage and frequency are averaged over cores."""
        snapshot = make_snapshot(1.0)

        usage, ghz = cpu_summary(snapshot)

        assert usage == pytest.approx(20.0)
        assert ghz == pytest.approx(2.5)

    def test_frequency_uses_whole_mhz(self):
        """Test the mean frequency is taken in whole MHz before conversion."""
        snapshot = make_snapshot(1.0, cpus=(CpuCore(usage=0.0, freq=1000), CpuCore(usage=0.0, freq=1001)))

        _, ghz = cpu_summary(snapshot)

        assert ghz == pytest.approx(1.0)

    def test_no_cores(self):
        """Test an empty core list summarises to zero."""
        assert cpu_summary(make_snapshot(1.0, cpus=())) == (0.0, 0.0)


class TestMemorySummary:
    """Tests for memory_summary."""

    def test_used_total_percent(self):
        """Test memory is reported in GiB with a percentage."""
        used, total, percent = memory_summary(make_snapshot(1.0))

        assert used == pytest.approx(8.0)
        assert total == pytest.approx(16.0)
        assert percent == pytest.approx(50.0)

    def test_zero_total(self):
        """Test a zero memory ceiling does not divide by zero."""
        _, _, percent = memory_summary(make_snapshot(1.0, mem=0, mem_max=0))

        assert percent == 0.0
