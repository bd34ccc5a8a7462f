"""Bounded snapshot history and windowed decimation."""

import math
from collections import deque
from collections.abc import Iterator, Sequence
from itertools import islice

from pymon.models import Snapshot

# One day at 1 Hz
DEFAULT_RETENTION = 24 * 60 * 60


class History:
    """
    Chronologically ordered, capacity-bounded buffer of Snapshots.

    Once full, every append evicts the oldest entry. Appends must carry a
    timestamp later than the newest entry.
    """

    def __init__(self, retention: int = DEFAULT_RETENTION) -> None:
        if retention < 1:
            raise ValueError(f"retention must be at least 1, got {retention}")
        self._buffer: deque[Snapshot] = deque(maxlen=retention)

    @property
    def retention(self) -> int:
        """Maximum number of retained snapshots."""
        return self._buffer.maxlen or 0

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(self._buffer)

    def __getitem__(self, index: int) -> Snapshot:
        return self._buffer[index]

    def append(self, snapshot: Snapshot) -> None:
        """Append the newest snapshot, evicting the oldest when full."""
        if self._buffer and snapshot.timestamp <= self._buffer[-1].timestamp:
            raise ValueError(
                f"snapshot at {snapshot.timestamp} is not newer than {self._buffer[-1].timestamp}"
            )
        self._buffer.append(snapshot)

    def oldest(self) -> Snapshot | None:
        return self._buffer[0] if self._buffer else None

    def latest(self) -> Snapshot | None:
        return self._buffer[-1] if self._buffer else None

    def tail(self, count: int) -> list[Snapshot]:
        """The most recent `count` snapshots in chronological order."""
        recent = list(islice(reversed(self._buffer), max(0, count)))
        recent.reverse()
        return recent


def window(history: History | Sequence[Snapshot], lookback_seconds: int, point_budget: int) -> list[Snapshot]:
    """
    Reduce the last `lookback_seconds` samples to at most `point_budget` points.

    Samples are selected, not averaged: every stride-th sample is kept,
    counted back from the most recent one so the newest sample is always
    present. When the history is shorter than one stride the oldest sample
    is returned on its own so the caller still has a valid axis bound.
    Assumes one sample per second.
    """
    if lookback_seconds <= 0:
        raise ValueError(f"lookback_seconds must be positive, got {lookback_seconds}")
    if point_budget <= 0:
        raise ValueError(f"point_budget must be positive, got {point_budget}")

    stride = max(1, math.ceil(lookback_seconds / point_budget))
    size = len(history)

    if size < stride:
        return [history[0]] if size else []

    if isinstance(history, History):
        recent = history.tail(lookback_seconds)
    else:
        recent = list(history[max(0, size - lookback_seconds):])

    aligned = recent[len(recent) % stride:]
    return aligned[stride - 1::stride]
