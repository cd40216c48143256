"""
GPU telemetry schema for GPUScope.

This module defines the canonical data structures used to represent
GPU telemetry inside GPUScope.

Design principles
-----------------
- Explicit, self-documenting schema via frozen dataclasses
- Clear separation between:
    * internal representation (dataclasses, snake_case)
    * wire representation (dicts with camelCase keys, as delivered by
      telemetry sources and written to exports)
- Every core field is required; there are no partial samples
- Cheap, explicit conversions (no reflection, no recursion)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

# ---------------------------------------------------------------------------
# Field tables
# ---------------------------------------------------------------------------

# (wire key, attribute name) for every scalar field, in wire order.
SCALAR_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("timestamp", "timestamp"),
    ("utilGPU", "util_gpu"),
    ("utilMemory", "util_memory"),
    ("temperature", "temperature"),
    ("power", "power"),
    ("smClock", "sm_clock"),
    ("memoryClock", "memory_clock"),
    ("memoryUsed", "memory_used"),
    ("memoryTotal", "memory_total"),
    ("memoryBandwidth", "memory_bandwidth"),
    ("pcieUtilization", "pcie_utilization"),
    ("fanSpeed", "fan_speed"),
)

SM_UTILIZATIONS_KEY = "smUtilizations"

# Series analysed by the trend analyzer and the session metrics.
SERIES_ATTRS: Dict[str, str] = {
    "utilGPU": "util_gpu",
    "utilMemory": "util_memory",
    "temperature": "temperature",
    "power": "power",
    "smClock": "sm_clock",
    "memoryClock": "memory_clock",
}


# ---------------------------------------------------------------------------
# Telemetry sample
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TelemetrySample:
    """
    One GPU telemetry reading at a point in time.

    Units
    -----
    timestamp : milliseconds (monotonic)
    util_gpu, util_memory, pcie_utilization, fan_speed : percent (0-100)
    temperature : degrees Celsius (0-120)
    power : watts (0-1000)
    sm_clock, memory_clock : MHz
    memory_used, memory_total : bytes
    sm_utilizations : percent per SM, one entry per streaming multiprocessor
    memory_bandwidth : GB/s

    Notes
    -----
    - Instances are immutable (`frozen=True`); `sm_utilizations` is stored
      as a tuple for the same reason.
    - Range checks live in `gpuscope.samplers.validator`; construct samples
      from untrusted records only after validation.
    """

    timestamp: float
    util_gpu: float
    util_memory: float
    temperature: float
    power: float
    sm_clock: float
    memory_clock: float
    memory_used: float
    memory_total: float
    sm_utilizations: Tuple[float, ...]
    memory_bandwidth: float
    pcie_utilization: float
    fan_speed: float

    def to_wire(self) -> Dict[str, Any]:
        """
        Convert this sample to its wire representation.

        Returns
        -------
        Dict[str, Any]
            JSON-serializable dict with camelCase keys.
        """
        data: Dict[str, Any] = {
            key: getattr(self, attr) for key, attr in SCALAR_FIELDS
        }
        data[SM_UTILIZATIONS_KEY] = list(self.sm_utilizations)
        return data

    @staticmethod
    def from_wire(data: Mapping[str, Any]) -> "TelemetrySample":
        """
        Reconstruct a TelemetrySample from its wire representation.

        Parameters
        ----------
        data : Mapping[str, Any]
            Wire-format mapping produced by `to_wire()` or by a telemetry
            source.

        Returns
        -------
        TelemetrySample
            Reconstructed sample.

        Raises
        ------
        KeyError
            If a core field is missing.
        """
        values = {attr: float(data[key]) for key, attr in SCALAR_FIELDS}
        values["sm_utilizations"] = tuple(
            float(v) for v in data[SM_UTILIZATIONS_KEY]
        )
        return TelemetrySample(**values)

    def series_value(self, key: str) -> float:
        """Return the value of a named series (wire key, e.g. ``"utilGPU"``)."""
        return getattr(self, SERIES_ATTRS[key])


# ---------------------------------------------------------------------------
# Architecture baseline
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArchitectureBaseline:
    """
    Static description of the monitored device.

    Set once per connection/session and shared read-only with every
    analyzer to normalize raw metrics into efficiency ratios.

    Units
    -----
    memory_bus_width : bits
    max_power : watts
    base_clock : MHz
    l2_cache_size : bytes
    thermal_target : degrees Celsius
    """

    name: str
    sm_count: int
    cores_per_sm: int
    memory_bus_width: int
    max_power: float
    base_clock: float
    l2_cache_size: int
    thermal_target: float = 80.0

    @property
    def max_compute_throughput(self) -> float:
        """Rough peak throughput estimate (2 ops per core per clock)."""
        return self.sm_count * self.cores_per_sm * 2.0

    def to_wire(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "smCount": self.sm_count,
            "coresPerSM": self.cores_per_sm,
            "memoryBusWidth": self.memory_bus_width,
            "maxPower": self.max_power,
            "baseClock": self.base_clock,
            "l2CacheSize": self.l2_cache_size,
            "thermalTarget": self.thermal_target,
        }

    @staticmethod
    def from_wire(data: Mapping[str, Any]) -> "ArchitectureBaseline":
        return ArchitectureBaseline(
            name=str(data["name"]),
            sm_count=int(data["smCount"]),
            cores_per_sm=int(data["coresPerSM"]),
            memory_bus_width=int(data["memoryBusWidth"]),
            max_power=float(data["maxPower"]),
            base_clock=float(data["baseClock"]),
            l2_cache_size=int(data["l2CacheSize"]),
            thermal_target=float(data.get("thermalTarget", 80.0)),
        )


def series(samples: Sequence[TelemetrySample], key: str) -> List[float]:
    """Extract one named series (wire key) from a list of samples."""
    attr = SERIES_ATTRS[key]
    return [getattr(s, attr) for s in samples]


def baseline_or_none(data: Optional[Mapping[str, Any]]) -> Optional[ArchitectureBaseline]:
    """Build a baseline from an optional wire mapping."""
    if not data:
        return None
    return ArchitectureBaseline.from_wire(data)
