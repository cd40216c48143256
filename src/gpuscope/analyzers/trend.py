"""
Trend analysis over sliding windows of telemetry.

This module contains *pure computation*: no rendering, no logging, no
state beyond the settings it was built with.

Per metric series ``y[0..n)`` (x = sample index):

- slope        : closed-form ordinary least squares
                 ``(n*Sxy - Sx*Sy) / (n*Sxx - Sx^2)``
- correlation  : Pearson correlation of (x, y); 0.0 for a constant series
- direction    : slope above +threshold -> "increasing",
                 below -threshold -> "decreasing", otherwise "stable"
- strength     : |correlation|
- prediction   : ``y[n-1] + slope * i`` for i = 1..steps

Windows shorter than `TrendSettings.window_size` yield ``None``: this is
the "not enough data yet" signal, not an error.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from gpuscope.runtime.settings import TrendSettings
from gpuscope.samplers.schema.telemetry import TelemetrySample, series

INCREASING = "increasing"
DECREASING = "decreasing"
STABLE = "stable"

IMPROVING = "improving"
DEGRADING = "degrading"
THERMAL_PRESSURE = "thermal_pressure"

TREND_METRICS = ("utilGPU", "utilMemory", "temperature", "power")


@dataclass(frozen=True)
class TrendResult:
    """Trend of a single metric series over one window."""

    direction: str
    strength: float
    slope: float
    correlation: float
    prediction: List[float]

    def to_wire(self) -> Dict[str, Any]:
        return {
            "direction": self.direction,
            "strength": self.strength,
            "slope": self.slope,
            "correlation": self.correlation,
            "prediction": list(self.prediction),
        }


@dataclass(frozen=True)
class TrendAlert:
    type: str
    severity: str
    message: str
    recommendation: str

    def to_wire(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity,
            "message": self.message,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class OverallTrend:
    """
    Cross-metric view of one window.

    `performance` is one of "improving", "degrading", "thermal_pressure",
    "stable"; `efficiency` is the trend of utilization per 100 W.
    """

    performance: str
    efficiency: TrendResult
    alerts: List[TrendAlert] = field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "performance": self.performance,
            "efficiency": self.efficiency.to_wire(),
            "alerts": [a.to_wire() for a in self.alerts],
        }


@dataclass(frozen=True)
class TrendReport:
    """Per-metric trends plus the overall classification for one window."""

    metrics: Dict[str, TrendResult]
    overall: OverallTrend

    def __getitem__(self, metric: str) -> TrendResult:
        return self.metrics[metric]

    def to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {k: v.to_wire() for k, v in self.metrics.items()}
        data["overall"] = self.overall.to_wire()
        return data


@dataclass(frozen=True)
class TrendChunk:
    """Trend analysis of one fixed-size chunk of a recorded session."""

    chunk_index: int
    start_time: float
    end_time: float
    trends: Optional[TrendReport]

    def to_wire(self) -> Dict[str, Any]:
        return {
            "chunkIndex": self.chunk_index,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "trends": self.trends.to_wire() if self.trends is not None else None,
        }


# ---------------------------------------------------------------------------
# Closed-form statistics
# ---------------------------------------------------------------------------


def ols_slope(values: Sequence[float]) -> float:
    """
    Closed-form OLS slope of `values` against their index.

    Returns 0.0 for fewer than two points (degenerate denominator).
    """
    n = len(values)
    if n < 2:
        return 0.0
    x_sum = n * (n - 1) / 2
    x_square_sum = n * (n - 1) * (2 * n - 1) / 6
    y_sum = sum(values)
    xy_sum = sum(i * y for i, y in enumerate(values))
    denom = n * x_square_sum - x_sum * x_sum
    if denom == 0:
        return 0.0
    return (n * xy_sum - x_sum * y_sum) / denom


def pearson_correlation(values: Sequence[float]) -> float:
    """
    Pearson correlation between index and value.

    A zero-variance series has an undefined correlation; it is reported
    as 0.0.
    """
    n = len(values)
    if n < 2:
        return 0.0
    mean_x = (n - 1) / 2
    mean_y = sum(values) / n
    numerator = sum((x - mean_x) * (y - mean_y) for x, y in enumerate(values))
    denom_x = math.sqrt(sum((x - mean_x) ** 2 for x in range(n)))
    denom_y = math.sqrt(sum((y - mean_y) ** 2 for y in values))
    denom = denom_x * denom_y
    if denom == 0:
        return 0.0
    # clamp float noise so strength never exceeds 1
    return max(-1.0, min(1.0, numerator / denom))


def categorize_performance(
    util: TrendResult, temperature: TrendResult, power: TrendResult
) -> str:
    """First matching rule wins."""
    if util.direction == INCREASING and temperature.direction != INCREASING:
        return IMPROVING
    if util.direction == DECREASING:
        return DEGRADING
    if temperature.direction == INCREASING and util.direction != INCREASING:
        return THERMAL_PRESSURE
    return STABLE


class TrendAnalyzer:
    """
    Linear-regression trend analysis over the trailing window of samples.

    Parameters
    ----------
    settings : TrendSettings, optional
        Window size, slope threshold, forecast length and alert strengths.
    """

    def __init__(self, settings: Optional[TrendSettings] = None):
        self.settings = settings or TrendSettings()

    @property
    def window_size(self) -> int:
        return self.settings.window_size

    def analyze_series(self, values: Sequence[float]) -> TrendResult:
        slope = ols_slope(values)
        correlation = pearson_correlation(values)
        threshold = self.settings.trend_threshold

        if slope > threshold:
            direction = INCREASING
        elif slope < -threshold:
            direction = DECREASING
        else:
            direction = STABLE

        return TrendResult(
            direction=direction,
            strength=abs(correlation),
            slope=slope,
            correlation=correlation,
            prediction=self.predict_next(values, slope),
        )

    def predict_next(self, values: Sequence[float], slope: float) -> List[float]:
        if not values:
            return []
        last = values[-1]
        return [last + slope * i for i in range(1, self.settings.prediction_steps + 1)]

    def analyze(self, window: Sequence[TelemetrySample]) -> Optional[TrendReport]:
        """
        Analyze the most recent `window_size` samples of `window`.

        Returns
        -------
        Optional[TrendReport]
            None when fewer than `window_size` samples are available.
        """
        if len(window) < self.settings.window_size:
            return None

        recent = list(window)[-self.settings.window_size:]
        metrics = {key: self.analyze_series(series(recent, key)) for key in TREND_METRICS}
        return TrendReport(metrics=metrics, overall=self._analyze_overall(recent, metrics))

    def _analyze_overall(
        self, samples: Sequence[TelemetrySample], metrics: Dict[str, TrendResult]
    ) -> OverallTrend:
        util = metrics["utilGPU"]
        temperature = metrics["temperature"]
        power = metrics["power"]

        efficiency_series = [
            s.util_gpu / max(1.0, s.power / 100.0) for s in samples
        ]
        return OverallTrend(
            performance=categorize_performance(util, temperature, power),
            efficiency=self.analyze_series(efficiency_series),
            alerts=self._generate_alerts(util, temperature),
        )

    def _generate_alerts(
        self, util: TrendResult, temperature: TrendResult
    ) -> List[TrendAlert]:
        alerts: List[TrendAlert] = []

        if (
            temperature.direction == INCREASING
            and temperature.strength > self.settings.thermal_alert_strength
        ):
            alerts.append(
                TrendAlert(
                    type="thermal_warning",
                    severity="medium",
                    message="Temperature is trending upward",
                    recommendation="Monitor thermal performance",
                )
            )

        if (
            util.direction == DECREASING
            and util.strength > self.settings.decline_alert_strength
        ):
            alerts.append(
                TrendAlert(
                    type="performance_decline",
                    severity="high",
                    message="GPU utilization is declining",
                    recommendation="Check for workload issues",
                )
            )

        return alerts

    def analyze_session(self, samples: Sequence[TelemetrySample]) -> List[TrendChunk]:
        """
        Analyze a full session in fixed-size chunks.

        Trailing chunks shorter than `window_size` are dropped, so a
        session too short for any trend yields an empty list.
        """
        size = self.settings.session_chunk_size
        chunks: List[TrendChunk] = []
        for start in range(0, len(samples), size):
            chunk = list(samples[start:start + size])
            if len(chunk) < self.settings.window_size:
                continue
            chunks.append(
                TrendChunk(
                    chunk_index=len(chunks),
                    start_time=chunk[0].timestamp,
                    end_time=chunk[-1].timestamp,
                    trends=self.analyze(chunk),
                )
            )
        return chunks
