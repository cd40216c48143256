"""
GPUScope settings (shared configuration schema).

This module defines the configuration dataclasses used by:
- analyzers (trend, bottleneck, efficiency) at construction time
- the performance analyzer (orchestrator)
- the telemetry monitor and CLI launcher

All thresholds that drive analysis live here so they can be overridden
without touching analyzer code. Defaults reproduce the documented values.
"""

from dataclasses import dataclass, field

MIN_PERIOD_MS = 50


@dataclass(frozen=True)
class TrendSettings:
    """
    Trend analysis parameters.

    Notes:
    - `window_size` is both the minimum number of samples required for a
      trend and the trailing window that is analyzed.
    - `trend_threshold` is the slope magnitude (units per sample) separating
      "stable" from "increasing"/"decreasing".
    """

    window_size: int = 50
    trend_threshold: float = 0.1
    prediction_steps: int = 5
    session_chunk_size: int = 100
    thermal_alert_strength: float = 0.7
    decline_alert_strength: float = 0.8

    def __post_init__(self):
        if self.window_size < 2:
            raise ValueError(f"window_size must be >= 2, got {self.window_size}")
        if self.session_chunk_size <= 0:
            raise ValueError(
                f"session_chunk_size must be > 0, got {self.session_chunk_size}"
            )
        if self.prediction_steps < 0:
            raise ValueError(
                f"prediction_steps must be >= 0, got {self.prediction_steps}"
            )


@dataclass(frozen=True)
class BottleneckThresholds:
    """Bottleneck detection thresholds."""

    high_utilization: float = 90.0
    low_efficiency: float = 60.0
    thermal_limit: float = 83.0
    power_limit_fraction: float = 0.95
    thermal_high: float = 85.0
    thermal_critical: float = 90.0
    # Not measured; kept as a fixed confidence for the efficiency rule.
    low_efficiency_confidence: float = 0.8
    window_seconds: float = 10.0

    def __post_init__(self):
        if self.window_seconds <= 0:
            raise ValueError(
                f"window_seconds must be > 0, got {self.window_seconds}"
            )


@dataclass(frozen=True)
class EfficiencyWeights:
    """Weights of the overall efficiency score. Must sum to 1."""

    compute: float = 0.30
    memory: float = 0.25
    power: float = 0.25
    thermal: float = 0.20

    def __post_init__(self):
        total = self.compute + self.memory + self.power + self.thermal
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"efficiency weights must sum to 1.0, got {total}")


@dataclass(frozen=True)
class EfficiencySettings:
    """
    Efficiency scoring parameters and fallbacks used when no architecture
    baseline has been set.
    """

    weights: EfficiencyWeights = field(default_factory=EfficiencyWeights)
    max_memory_bandwidth_gbs: float = 1000.0
    default_base_clock_mhz: float = 1500.0
    default_thermal_target_c: float = 80.0
    fallback_power_w: float = 200.0
    min_power_w: float = 1.0
    trend_windows: int = 5
    max_trend_window: int = 50
    compute_threshold: float = 70.0
    memory_threshold: float = 60.0
    power_threshold: float = 50.0
    thermal_threshold: float = 60.0

    def __post_init__(self):
        if self.trend_windows <= 0:
            raise ValueError(f"trend_windows must be > 0, got {self.trend_windows}")


@dataclass(frozen=True)
class AnalysisSettings:
    """
    Top-level analysis settings consumed by `PerformanceAnalyzer`.

    Notes:
    - `min_realtime_history` guards the per-tick path against noise.
    - `live_window_ms` bounds the history span inspected for live bottlenecks.
    """

    trend: TrendSettings = field(default_factory=TrendSettings)
    bottleneck: BottleneckThresholds = field(default_factory=BottleneckThresholds)
    efficiency: EfficiencySettings = field(default_factory=EfficiencySettings)
    min_realtime_history: int = 10
    cache_max_entries: int = 100
    live_window_ms: float = 60_000.0

    def __post_init__(self):
        if self.cache_max_entries <= 0:
            raise ValueError(
                f"cache_max_entries must be > 0, got {self.cache_max_entries}"
            )


@dataclass(frozen=True)
class MonitorSettings:
    """
    Telemetry monitor settings.

    Notes:
    - `period_ms` controls the sampling cadence; values below 50 ms are
      clamped to 50 ms (see `effective_period_ms`).
    - `mode` selects the display backend ("cli" | "none").
    """

    period_ms: float = 100.0
    history_capacity: int = 1000
    mode: str = "cli"
    logs_dir: str = "./logs"
    enable_logging: bool = False
    session_id: str = ""
    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)

    def __post_init__(self):
        if self.history_capacity <= 0:
            raise ValueError(
                f"history_capacity must be > 0, got {self.history_capacity}"
            )

    @property
    def effective_period_ms(self) -> float:
        return max(float(MIN_PERIOD_MS), float(self.period_ms))
