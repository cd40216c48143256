import pytest

from gpuscope.config import config
from gpuscope.samplers.schema.telemetry import ArchitectureBaseline, TelemetrySample

GIB = 1024 * 1024 * 1024

# A sample that fires no bottleneck rule: efficiency = 70 / max(1, 100/100) = 70.
BASE_RECORD = {
    "timestamp": 0.0,
    "utilGPU": 70.0,
    "utilMemory": 40.0,
    "temperature": 60.0,
    "power": 100.0,
    "smClock": 1500.0,
    "memoryClock": 7000.0,
    "memoryUsed": 8 * GIB,
    "memoryTotal": 24 * GIB,
    "smUtilizations": [70.0, 70.0, 70.0, 70.0],
    "memoryBandwidth": 500.0,
    "pcieUtilization": 20.0,
    "fanSpeed": 50.0,
}


def make_record(**overrides):
    """Wire-format record (camelCase keys)."""
    record = dict(BASE_RECORD)
    record["smUtilizations"] = list(BASE_RECORD["smUtilizations"])
    record.update(overrides)
    return record


def make_sample(**overrides):
    """TelemetrySample; overrides use wire keys, e.g. utilGPU=95."""
    return TelemetrySample.from_wire(make_record(**overrides))


def make_series(n, step_ms=100.0, **per_index):
    """
    `n` samples spaced `step_ms` apart. Each keyword maps a wire key to a
    constant or to a callable of the sample index.
    """
    out = []
    for i in range(n):
        overrides = {"timestamp": i * step_ms}
        for key, value in per_index.items():
            overrides[key] = value(i) if callable(value) else value
        out.append(make_sample(**overrides))
    return out


@pytest.fixture
def small_baseline():
    return ArchitectureBaseline(
        name="Test GPU",
        sm_count=4,
        cores_per_sm=64,
        memory_bus_width=256,
        max_power=300.0,
        base_clock=2000.0,
        l2_cache_size=4 * 1024 * 1024,
        thermal_target=80.0,
    )


@pytest.fixture(autouse=True)
def reset_global_config(tmp_path):
    """The monitor writes into the process-wide config; isolate every test."""
    config.enable_logging = False
    config.logs_dir = str(tmp_path / "logs")
    config.session_id = ""
    yield
    config.enable_logging = False
    config.logs_dir = "./logs"
    config.session_id = ""
