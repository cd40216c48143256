"""
Tests for the bounded telemetry history, its append counter, and the
incremental JSONL writer built on that counter.
"""

import json
from unittest.mock import patch

import msgspec
import pytest

from conftest import make_record, make_sample
from gpuscope.database.history import TelemetryHistory
from gpuscope.database.history_writer import HistoryWriter, load_session
from gpuscope.samplers.validator import TelemetryValidator


def _filled(n, capacity=1000):
    history = TelemetryHistory(capacity)
    for i in range(n):
        history.append(make_sample(timestamp=float(i)))
    return history


class TestTelemetryHistory:

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            TelemetryHistory(0)

    def test_empty(self):
        history = TelemetryHistory(5)
        assert len(history) == 0
        assert not history
        assert history.latest() is None
        assert history.samples() == []

    def test_fifo_eviction(self):
        history = _filled(8, capacity=5)
        assert len(history) == 5
        assert [s.timestamp for s in history.samples()] == [3.0, 4.0, 5.0, 6.0, 7.0]
        assert history.latest().timestamp == 7.0

    def test_append_count_survives_eviction(self):
        history = _filled(8, capacity=5)
        assert history.get_append_count() == 8

    def test_window(self):
        history = _filled(10)
        assert [s.timestamp for s in history.window(3)] == [7.0, 8.0, 9.0]
        assert len(history.window(50)) == 10
        assert history.window(0) == []

    def test_since(self):
        history = _filled(10)
        assert [s.timestamp for s in history.since(7.0)] == [7.0, 8.0, 9.0]
        assert history.since(100.0) == []

    def test_get_record_at_index(self):
        history = _filled(3)
        assert history.get_record_at_index(0).timestamp == 0.0
        assert history.get_record_at_index(-1).timestamp == 2.0
        assert history.get_record_at_index(3) is None

    def test_clear_keeps_counter_monotonic(self):
        history = _filled(4)
        history.clear()
        assert len(history) == 0
        assert history.get_append_count() == 4

        history.append(make_sample(timestamp=10.0))
        assert history.get_append_count() == 5

    def test_snapshot_is_detached(self):
        history = _filled(3)
        snapshot = history.samples()
        history.append(make_sample(timestamp=99.0))
        assert len(snapshot) == 3


class TestHistoryWriter:

    def _read_rows(self, path):
        with open(path, "rb") as f:
            return [json.loads(line) for line in f if line.strip()]

    def test_disabled_logging_writes_nothing(self, tmp_path):
        history = _filled(3)
        writer = HistoryWriter(history, logs_dir=str(tmp_path))
        assert writer.flush() == 0
        assert list(tmp_path.iterdir()) == []

    def test_incremental_write(self, tmp_path):
        history = TelemetryHistory(100)
        with patch("gpuscope.database.history_writer.config") as mock_cfg:
            mock_cfg.enable_logging = True
            writer = HistoryWriter(history, logs_dir=str(tmp_path))

            for i in range(3):
                history.append(make_sample(timestamp=float(i)))
            assert writer.flush() == 3

            # nothing new
            assert writer.flush() == 0

            history.append(make_sample(timestamp=3.0))
            history.append(make_sample(timestamp=4.0))
            assert writer.flush() == 2

        rows = self._read_rows(writer.path)
        assert [r["timestamp"] for r in rows] == [0.0, 1.0, 2.0, 3.0, 4.0]
        assert rows[0]["smUtilizations"] == [70.0, 70.0, 70.0, 70.0]

    def test_rows_evicted_before_flush_are_lost(self, tmp_path):
        history = TelemetryHistory(3)
        with patch("gpuscope.database.history_writer.config") as mock_cfg:
            mock_cfg.enable_logging = True
            writer = HistoryWriter(history, logs_dir=str(tmp_path))

            for i in range(3):
                history.append(make_sample(timestamp=float(i)))
            writer.flush()

            for i in range(3, 8):
                history.append(make_sample(timestamp=float(i)))
            assert writer.flush() == 3

        rows = self._read_rows(writer.path)
        assert [r["timestamp"] for r in rows] == [0.0, 1.0, 2.0, 5.0, 6.0, 7.0]

    def test_refill_after_clear_is_fully_written(self, tmp_path):
        history = TelemetryHistory(100)
        with patch("gpuscope.database.history_writer.config") as mock_cfg:
            mock_cfg.enable_logging = True
            writer = HistoryWriter(history, logs_dir=str(tmp_path))

            for i in range(5):
                history.append(make_sample(timestamp=float(i)))
            assert writer.flush() == 5

            history.clear()
            for i in range(10, 17):
                history.append(make_sample(timestamp=float(i)))
            assert writer.flush() == 7

        rows = self._read_rows(writer.path)
        assert len(rows) == 12
        assert [r["timestamp"] for r in rows[5:]] == [float(i) for i in range(10, 17)]

    def test_path_uses_session_id(self, tmp_path):
        with patch("gpuscope.session.config") as mock_cfg:
            mock_cfg.session_id = "run_42"
            writer = HistoryWriter(TelemetryHistory(), logs_dir=str(tmp_path))
            assert writer.path == str(tmp_path / "run_42" / "data" / "telemetry.jsonl")


class TestLoadSession:

    def _write_lines(self, path, records):
        encoder = msgspec.json.Encoder()
        with open(path, "wb") as f:
            for r in records:
                f.write(encoder.encode(r))
                f.write(b"\n")

    def test_roundtrip(self, tmp_path):
        path = tmp_path / "session.jsonl"
        originals = [make_sample(timestamp=float(i), utilGPU=10.0 + i) for i in range(5)]
        self._write_lines(path, [s.to_wire() for s in originals])

        assert load_session(path) == originals

    def test_invalid_rows_dropped(self, tmp_path):
        path = tmp_path / "session.jsonl"
        self._write_lines(
            path,
            [
                make_record(timestamp=0.0),
                make_record(timestamp=1.0, utilGPU=150.0),
                make_record(timestamp=2.0),
            ],
        )
        samples = load_session(path)
        assert [s.timestamp for s in samples] == [0.0, 2.0]

    def test_validator_baseline_applies(self, tmp_path, small_baseline):
        path = tmp_path / "session.jsonl"
        self._write_lines(
            path,
            [make_record(smUtilizations=[1.0] * 4), make_record(smUtilizations=[1.0] * 2)],
        )
        assert len(load_session(path, TelemetryValidator(small_baseline))) == 1

    def test_blank_lines_skipped(self, tmp_path):
        path = tmp_path / "session.jsonl"
        encoded = msgspec.json.encode(make_record())
        path.write_bytes(b"\n" + encoded + b"\n\n")
        assert len(load_session(path)) == 1

    def test_bad_json_raises(self, tmp_path):
        path = tmp_path / "session.jsonl"
        path.write_bytes(b"{not json}\n")
        with pytest.raises(msgspec.DecodeError):
            load_session(path)
