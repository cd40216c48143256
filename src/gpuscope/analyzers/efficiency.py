"""
Efficiency scoring of GPU telemetry.

This module contains *pure computation*: per-sample multi-factor
efficiency against an architecture baseline, session aggregation,
windowed efficiency snapshots and declarative recommendations.

Per-sample factors (all 0-100 scale, may exceed 100 for overclocked or
very low-power readings):

compute  = util/100 * (smClock / baseClock) * 100
memory   = utilMemory/100 * (bandwidth / maxBandwidth) * 100
power    = (util/100) / (power/100) * 100, watts floored at
           `min_power_w` (1 W), so at most 10000 for a 100% reading
thermal  = util/100 * max(0, 1 - max(0, temp - target) / target) * 100
overall  = weighted sum (compute .30, memory .25, power .25, thermal .20)

Aggregation is mean-then-combine: each factor is averaged over the
samples first, then `overall` is recomputed from those means. It is not
the mean of the per-sample overall values.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from gpuscope.runtime.settings import EfficiencySettings, EfficiencyWeights
from gpuscope.samplers.schema.telemetry import ArchitectureBaseline, TelemetrySample


@dataclass(frozen=True)
class EfficiencyMetrics:
    compute_efficiency: float
    memory_efficiency: float
    power_efficiency: float
    thermal_efficiency: float
    overall_efficiency: float
    timestamp: Optional[float] = None

    def to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "computeEfficiency": self.compute_efficiency,
            "memoryEfficiency": self.memory_efficiency,
            "powerEfficiency": self.power_efficiency,
            "thermalEfficiency": self.thermal_efficiency,
            "overallEfficiency": self.overall_efficiency,
        }
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data


@dataclass(frozen=True)
class EfficiencyWindow:
    start_index: int
    end_index: int
    efficiency: EfficiencyMetrics

    def to_wire(self) -> Dict[str, Any]:
        return {
            "startIndex": self.start_index,
            "endIndex": self.end_index,
            "efficiency": self.efficiency.to_wire(),
        }


@dataclass(frozen=True)
class Recommendation:
    type: str
    priority: str
    description: str
    suggestions: List[str] = field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "priority": self.priority,
            "description": self.description,
            "suggestions": list(self.suggestions),
        }


@dataclass(frozen=True)
class EfficiencyAnalysis:
    """Session-level efficiency: aggregate, windowed snapshots, recommendations."""

    overall: Optional[EfficiencyMetrics]
    trends: List[EfficiencyWindow]
    recommendations: List[Recommendation]

    def to_wire(self) -> Dict[str, Any]:
        return {
            "overall": self.overall.to_wire() if self.overall is not None else None,
            "trends": [w.to_wire() for w in self.trends],
            "recommendations": [r.to_wire() for r in self.recommendations],
        }


def combine(
    compute: float, memory: float, power: float, thermal: float, weights: EfficiencyWeights
) -> float:
    return (
        compute * weights.compute
        + memory * weights.memory
        + power * weights.power
        + thermal * weights.thermal
    )


class EfficiencyCalculator:
    """
    Multi-factor efficiency scoring.

    Without an architecture baseline the calculator degrades to documented
    defaults (`EfficiencySettings.default_base_clock_mhz`,
    `default_thermal_target_c`) instead of failing.
    """

    def __init__(
        self,
        settings: Optional[EfficiencySettings] = None,
        baseline: Optional[ArchitectureBaseline] = None,
    ):
        self.settings = settings or EfficiencySettings()
        self.baseline = baseline

    def set_baseline(self, baseline: Optional[ArchitectureBaseline]) -> None:
        self.baseline = baseline

    @property
    def base_clock(self) -> float:
        if self.baseline is not None and self.baseline.base_clock > 0:
            return self.baseline.base_clock
        return self.settings.default_base_clock_mhz

    @property
    def thermal_target(self) -> float:
        if self.baseline is not None and self.baseline.thermal_target > 0:
            return self.baseline.thermal_target
        return self.settings.default_thermal_target_c

    # ------------------------------------------------------------------
    # Per-sample factors
    # ------------------------------------------------------------------
    def compute_efficiency(self, sample: TelemetrySample) -> float:
        return (sample.util_gpu / 100.0) * (sample.sm_clock / max(1.0, self.base_clock)) * 100.0

    def memory_efficiency(self, sample: TelemetrySample) -> float:
        max_bw = max(1.0, self.settings.max_memory_bandwidth_gbs)
        return (sample.util_memory / 100.0) * (sample.memory_bandwidth / max_bw) * 100.0

    def power_efficiency(self, sample: TelemetrySample) -> float:
        # a zero reading means "not reported"
        power = sample.power if sample.power > 0 else self.settings.fallback_power_w
        power = max(self.settings.min_power_w, power)
        return (sample.util_gpu / 100.0) / (power / 100.0) * 100.0

    def thermal_efficiency(self, sample: TelemetrySample) -> float:
        target = max(1.0, self.thermal_target)
        penalty = max(0.0, (sample.temperature - target) / target)
        return max(0.0, (sample.util_gpu / 100.0) * (1.0 - penalty)) * 100.0

    def calculate_instantaneous(self, sample: TelemetrySample) -> EfficiencyMetrics:
        compute = self.compute_efficiency(sample)
        memory = self.memory_efficiency(sample)
        power = self.power_efficiency(sample)
        thermal = self.thermal_efficiency(sample)
        return EfficiencyMetrics(
            compute_efficiency=compute,
            memory_efficiency=memory,
            power_efficiency=power,
            thermal_efficiency=thermal,
            overall_efficiency=combine(compute, memory, power, thermal, self.settings.weights),
            timestamp=sample.timestamp,
        )

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------
    def aggregate(self, metrics: Sequence[EfficiencyMetrics]) -> Optional[EfficiencyMetrics]:
        """Mean of each factor, then overall recomputed from the means."""
        if not metrics:
            return None
        compute = float(np.mean([m.compute_efficiency for m in metrics]))
        memory = float(np.mean([m.memory_efficiency for m in metrics]))
        power = float(np.mean([m.power_efficiency for m in metrics]))
        thermal = float(np.mean([m.thermal_efficiency for m in metrics]))
        return EfficiencyMetrics(
            compute_efficiency=compute,
            memory_efficiency=memory,
            power_efficiency=power,
            thermal_efficiency=thermal,
            overall_efficiency=combine(compute, memory, power, thermal, self.settings.weights),
        )

    def trend_windows(self, metrics: Sequence[EfficiencyMetrics]) -> List[EfficiencyWindow]:
        """
        Aggregate consecutive fixed-size windows of the efficiency series.

        Window size is ``min(max_trend_window, n // trend_windows)`` (at
        least 1); a trailing remainder shorter than a window is skipped.
        """
        n = len(metrics)
        if n == 0:
            return []
        size = max(1, min(self.settings.max_trend_window, n // self.settings.trend_windows))
        windows: List[EfficiencyWindow] = []
        for start in range(0, n - size + 1, size):
            agg = self.aggregate(metrics[start:start + size])
            windows.append(
                EfficiencyWindow(start_index=start, end_index=start + size - 1, efficiency=agg)
            )
        return windows

    def recommendations(self, overall: Optional[EfficiencyMetrics]) -> List[Recommendation]:
        if overall is None:
            return []
        s = self.settings
        recs: List[Recommendation] = []

        if overall.compute_efficiency < s.compute_threshold:
            recs.append(
                Recommendation(
                    type="compute_optimization",
                    priority="high",
                    description="Compute efficiency is below optimal",
                    suggestions=[
                        "Optimize kernel launch parameters",
                        "Improve SM occupancy",
                        "Consider workload balancing",
                    ],
                )
            )

        if overall.memory_efficiency < s.memory_threshold:
            recs.append(
                Recommendation(
                    type="memory_optimization",
                    priority="high",
                    description="Memory efficiency is low",
                    suggestions=[
                        "Optimize memory access patterns",
                        "Use shared memory effectively",
                        "Minimize memory transfers",
                    ],
                )
            )

        if overall.power_efficiency < s.power_threshold:
            recs.append(
                Recommendation(
                    type="power_optimization",
                    priority="medium",
                    description="Power efficiency could be improved",
                    suggestions=[
                        "Consider dynamic voltage scaling",
                        "Optimize for target power envelope",
                        "Balance performance vs power",
                    ],
                )
            )

        if overall.thermal_efficiency < s.thermal_threshold:
            recs.append(
                Recommendation(
                    type="thermal_optimization",
                    priority="medium",
                    description="Thermal efficiency is suboptimal",
                    suggestions=[
                        "Improve cooling solution",
                        "Reduce power spikes",
                        "Implement thermal-aware scheduling",
                    ],
                )
            )

        return recs

    def analyze_session(self, samples: Sequence[TelemetrySample]) -> EfficiencyAnalysis:
        metrics = [self.calculate_instantaneous(s) for s in samples]
        overall = self.aggregate(metrics)
        return EfficiencyAnalysis(
            overall=overall,
            trends=self.trend_windows(metrics),
            recommendations=self.recommendations(overall),
        )
