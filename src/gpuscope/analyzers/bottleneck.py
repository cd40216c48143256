"""
Bottleneck detection over windows of telemetry.

Responsibilities
----------------
- Classify one window of samples into zero or more bottleneck findings
  (rules are independent; several may fire on the same window)
- Split a recorded session into fixed-duration windows by timestamp
- Aggregate window-level findings per bottleneck type across a session

Rules (thresholds from `BottleneckThresholds`)
----------------------------------------------
gpu_saturated       mean utilGPU > high_utilization           severity high
memory_saturated    mean utilMemory > high_utilization        severity high
thermal_throttling  mean temperature > thermal_limit          critical/high/medium
power_limited       mean power > max_power * fraction         severity medium
                    (only with an architecture baseline)
low_efficiency      utilGPU / max(1, power/100) < low_efficiency
                                                              severity medium

Confidence for the threshold rules is the fraction of samples in the
window individually above the threshold. The efficiency rule carries a
fixed confidence (`low_efficiency_confidence`).
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from gpuscope.runtime.settings import BottleneckThresholds
from gpuscope.samplers.schema.telemetry import (
    ArchitectureBaseline,
    TelemetrySample,
    series,
)

GPU_SATURATED = "gpu_saturated"
MEMORY_SATURATED = "memory_saturated"
THERMAL_THROTTLING = "thermal_throttling"
POWER_LIMITED = "power_limited"
LOW_EFFICIENCY = "low_efficiency"

# Highest first; also the tie-break order for the dominant severity.
SEVERITY_RANK = {"critical": 3, "high": 2, "medium": 1, "low": 0}

WINDOW_AVERAGE_KEYS = ("utilGPU", "utilMemory", "temperature", "power", "smClock", "memoryClock")


@dataclass(frozen=True)
class Bottleneck:
    """A single-window bottleneck finding."""

    type: str
    severity: str
    confidence: float
    description: str
    metrics: Dict[str, float] = field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity,
            "confidence": self.confidence,
            "description": self.description,
            "metrics": dict(self.metrics),
        }


@dataclass(frozen=True)
class BottleneckWindow:
    """Findings of one session window."""

    window_index: int
    start_time: float
    end_time: float
    bottlenecks: List[Bottleneck]

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass
class AggregatedBottleneck:
    """
    Session-level accumulation of every window occurrence of one type.

    `total_duration` sums the durations (ms) of the windows in which this
    type fired; durations of different types are independent.
    """

    type: str
    occurrences: int = 0
    average_confidence: float = 0.0
    dominant_severity: str = ""
    total_duration: float = 0.0
    descriptions: List[str] = field(default_factory=list)
    time_ranges: List[Dict[str, float]] = field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "occurrences": self.occurrences,
            "averageConfidence": self.average_confidence,
            "dominantSeverity": self.dominant_severity,
            "totalDuration": self.total_duration,
            "descriptions": list(self.descriptions),
            "timeRanges": [dict(r) for r in self.time_ranges],
        }


def dominant_severity(severities: Sequence[str]) -> str:
    """
    Most frequent severity; equal counts resolve to the more severe one
    (critical > high > medium > low).
    """
    if not severities:
        return ""
    counts = Counter(severities)
    return max(counts, key=lambda s: (counts[s], SEVERITY_RANK.get(s, -1)))


def fraction_exceeding(values: Sequence[float], threshold: float) -> float:
    if not values:
        return 0.0
    return sum(1 for v in values if v > threshold) / len(values)


def create_time_windows(
    samples: Sequence[TelemetrySample], window_ms: float
) -> List[List[TelemetrySample]]:
    """
    Partition samples into consecutive windows by timestamp.

    A window starts at its first sample and collects every following
    sample less than `window_ms` later; the first sample past that bound
    opens the next window. A non-empty trailing window is kept.
    """
    if not samples:
        return []

    windows: List[List[TelemetrySample]] = []
    current: List[TelemetrySample] = []
    window_start = samples[0].timestamp

    for sample in samples:
        if sample.timestamp - window_start < window_ms:
            current.append(sample)
        else:
            if current:
                windows.append(current)
            current = [sample]
            window_start = sample.timestamp

    if current:
        windows.append(current)
    return windows


class BottleneckDetector:
    """
    Threshold- and window-based bottleneck classifier.

    Parameters
    ----------
    thresholds : BottleneckThresholds, optional
        Detection thresholds; defaults reproduce the documented values.
    baseline : ArchitectureBaseline, optional
        Enables the power-limit rule.
    """

    def __init__(
        self,
        thresholds: Optional[BottleneckThresholds] = None,
        baseline: Optional[ArchitectureBaseline] = None,
    ):
        self.thresholds = thresholds or BottleneckThresholds()
        self.baseline = baseline

    def set_baseline(self, baseline: Optional[ArchitectureBaseline]) -> None:
        self.baseline = baseline

    # ------------------------------------------------------------------
    # Single window
    # ------------------------------------------------------------------
    @staticmethod
    def window_averages(window: Sequence[TelemetrySample]) -> Dict[str, float]:
        return {
            key: float(np.mean(series(window, key))) for key in WINDOW_AVERAGE_KEYS
        }

    def thermal_severity(self, temperature: float) -> str:
        if temperature > self.thresholds.thermal_critical:
            return "critical"
        if temperature > self.thresholds.thermal_high:
            return "high"
        return "medium"

    @staticmethod
    def window_efficiency(averages: Dict[str, float]) -> float:
        """Utilization per 100 W of the window means."""
        return averages["utilGPU"] / max(1.0, averages["power"] / 100.0)

    def analyze_window(self, window: Sequence[TelemetrySample]) -> List[Bottleneck]:
        """Return every bottleneck that fires on `window` (empty for no samples)."""
        if not window:
            return []

        t = self.thresholds
        averages = self.window_averages(window)
        found: List[Bottleneck] = []

        if averages["utilGPU"] > t.high_utilization:
            found.append(
                Bottleneck(
                    type=GPU_SATURATED,
                    severity="high",
                    confidence=fraction_exceeding(series(window, "utilGPU"), t.high_utilization),
                    description="GPU compute units are saturated",
                    metrics={"averageUtilization": averages["utilGPU"]},
                )
            )

        if averages["utilMemory"] > t.high_utilization:
            found.append(
                Bottleneck(
                    type=MEMORY_SATURATED,
                    severity="high",
                    confidence=fraction_exceeding(series(window, "utilMemory"), t.high_utilization),
                    description="Memory bandwidth is saturated",
                    metrics={"averageMemoryUtil": averages["utilMemory"]},
                )
            )

        if averages["temperature"] > t.thermal_limit:
            found.append(
                Bottleneck(
                    type=THERMAL_THROTTLING,
                    severity=self.thermal_severity(averages["temperature"]),
                    confidence=fraction_exceeding(series(window, "temperature"), t.thermal_limit),
                    description="GPU is thermally throttling",
                    metrics={"averageTemperature": averages["temperature"]},
                )
            )

        if self.baseline is not None:
            power_limit = self.baseline.max_power * t.power_limit_fraction
            if averages["power"] > power_limit:
                found.append(
                    Bottleneck(
                        type=POWER_LIMITED,
                        severity="medium",
                        confidence=fraction_exceeding(series(window, "power"), power_limit),
                        description="GPU is hitting power limits",
                        metrics={
                            "averagePower": averages["power"],
                            "powerLimit": self.baseline.max_power,
                        },
                    )
                )

        efficiency = self.window_efficiency(averages)
        if efficiency < t.low_efficiency:
            found.append(
                Bottleneck(
                    type=LOW_EFFICIENCY,
                    severity="medium",
                    confidence=t.low_efficiency_confidence,
                    description="Overall GPU efficiency is low",
                    metrics={"efficiency": efficiency},
                )
            )

        return found

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def analyze_windows(self, samples: Sequence[TelemetrySample]) -> List[BottleneckWindow]:
        """Window-level findings for a session; windows with no finding are omitted."""
        window_ms = self.thresholds.window_seconds * 1000.0
        out: List[BottleneckWindow] = []
        for index, window in enumerate(create_time_windows(samples, window_ms)):
            found = self.analyze_window(window)
            if found:
                out.append(
                    BottleneckWindow(
                        window_index=index,
                        start_time=window[0].timestamp,
                        end_time=window[-1].timestamp,
                        bottlenecks=found,
                    )
                )
        return out

    def analyze_session(self, samples: Sequence[TelemetrySample]) -> List[AggregatedBottleneck]:
        return aggregate_bottlenecks(self.analyze_windows(samples))


def aggregate_bottlenecks(windows: Sequence[BottleneckWindow]) -> List[AggregatedBottleneck]:
    """
    Group window findings by type, in first-seen order.

    average_confidence is the mean of per-occurrence confidences;
    descriptions are unique, in first-seen order.
    """
    aggregated: Dict[str, AggregatedBottleneck] = {}
    confidences: Dict[str, List[float]] = {}
    severities: Dict[str, List[str]] = {}

    for window in windows:
        for b in window.bottlenecks:
            agg = aggregated.get(b.type)
            if agg is None:
                agg = aggregated[b.type] = AggregatedBottleneck(type=b.type)
                confidences[b.type] = []
                severities[b.type] = []

            agg.occurrences += 1
            confidences[b.type].append(b.confidence)
            severities[b.type].append(b.severity)
            if b.description not in agg.descriptions:
                agg.descriptions.append(b.description)
            agg.time_ranges.append({"start": window.start_time, "end": window.end_time})
            agg.total_duration += window.duration

    for key, agg in aggregated.items():
        agg.average_confidence = sum(confidences[key]) / agg.occurrences
        agg.dominant_severity = dominant_severity(severities[key])

    return list(aggregated.values())
