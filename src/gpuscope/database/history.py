from collections import deque
from typing import Deque, Iterator, List, Optional

from gpuscope.samplers.schema.telemetry import TelemetrySample


class TelemetryHistory:
    """
    Fixed-capacity, ordered log of validated telemetry samples.

    Backed by `deque(maxlen=capacity)`: appending past capacity evicts the
    oldest sample (FIFO). The history is the only owner of the sample
    sequence; analyzers receive list snapshots and never mutate it.

    A monotonic append counter survives eviction so incremental consumers
    (e.g. the JSONL writer) can tell which rows are new.
    """

    def __init__(self, capacity: int = 1000):
        if capacity <= 0:
            raise ValueError(f"capacity must be > 0, got {capacity}")
        self.capacity = int(capacity)
        self._rows: Deque[TelemetrySample] = deque(maxlen=self.capacity)
        self._append_count = 0

    def append(self, sample: TelemetrySample) -> None:
        """Append a validated sample, evicting the oldest one on overflow."""
        self._rows.append(sample)
        self._append_count += 1

    def get_append_count(self) -> int:
        """Total number of samples ever appended (not reset by eviction)."""
        return self._append_count

    def latest(self) -> Optional[TelemetrySample]:
        return self._rows[-1] if self._rows else None

    def get_record_at_index(self, index: int) -> Optional[TelemetrySample]:
        """
        Return the sample at a given index, or None if out of range.
        Negative indexing works like Python lists.
        """
        if -len(self._rows) <= index < len(self._rows):
            return self._rows[index]
        return None

    def samples(self) -> List[TelemetrySample]:
        """Return a snapshot of all retained samples, oldest first."""
        return list(self._rows)

    def window(self, count: int) -> List[TelemetrySample]:
        """Return the most recent `count` samples, oldest first."""
        if count <= 0:
            return []
        if count >= len(self._rows):
            return list(self._rows)
        start = len(self._rows) - count
        return [self._rows[i] for i in range(start, len(self._rows))]

    def since(self, timestamp: float) -> List[TelemetrySample]:
        """Return samples with `sample.timestamp >= timestamp`, oldest first."""
        out: List[TelemetrySample] = []
        for sample in reversed(self._rows):
            if sample.timestamp < timestamp:
                break
            out.append(sample)
        out.reverse()
        return out

    def clear(self) -> None:
        """Drop all samples. The append counter keeps counting."""
        self._rows.clear()

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[TelemetrySample]:
        return iter(list(self._rows))

    def __bool__(self) -> bool:
        return bool(self._rows)
