import os
from pathlib import Path
from typing import List, Optional, Union

import msgspec

from gpuscope.config import config
from gpuscope.database.history import TelemetryHistory
from gpuscope.samplers.schema.telemetry import TelemetrySample
from gpuscope.samplers.validator import TelemetryValidator
from gpuscope.session import get_session_id

TELEMETRY_FILE = "telemetry.jsonl"


class HistoryWriter:
    """
    Writes incremental updates from a TelemetryHistory to a JSONL file.

    Keeps track of the history append counter, so only rows appended since
    the previous flush are written, even after FIFO eviction or clear().
    Rows evicted before they could be flushed are lost (best effort).
    """

    def __init__(self, history: TelemetryHistory, logs_dir: Optional[str] = None):
        self.history = history
        self._base_dir = logs_dir
        self._last_written = 0
        self._encoder = msgspec.json.Encoder()

    @property
    def logs_dir(self) -> str:
        base = self._base_dir if self._base_dir is not None else config.logs_dir
        return os.path.join(base, get_session_id(), "data")

    @property
    def path(self) -> str:
        return os.path.join(self.logs_dir, TELEMETRY_FILE)

    def flush(self) -> int:
        """Append new rows to the session file. Returns the number of rows written."""
        if not config.enable_logging:
            return 0

        total = self.history.get_append_count()
        pending = total - self._last_written
        if pending <= 0:
            return 0

        new_rows = self.history.window(pending)
        os.makedirs(self.logs_dir, exist_ok=True)
        with open(self.path, "ab") as f:
            for sample in new_rows:
                f.write(self._encoder.encode(sample.to_wire()))
                f.write(b"\n")

        self._last_written = total
        return len(new_rows)


def load_session(
    path: Union[str, Path],
    validator: Optional[TelemetryValidator] = None,
) -> List[TelemetrySample]:
    """
    Read a JSONL session recording.

    Rows failing validation are dropped, as they would be on the live path.

    Raises
    ------
    msgspec.DecodeError
        If a line is not valid JSON.
    """
    validator = validator or TelemetryValidator()
    decoder = msgspec.json.Decoder()
    samples: List[TelemetrySample] = []
    with open(path, "rb") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            record = decoder.decode(line)
            if validator.validate(record):
                samples.append(TelemetrySample.from_wire(record))
    return samples
