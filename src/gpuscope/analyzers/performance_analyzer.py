"""
Performance analyzer (orchestrator).

Ties the trend analyzer, bottleneck detector and efficiency calculator
together on two paths:

- per telemetry tick (`on_tick`): trends and live bottlenecks over the
  current history, guarded by a minimum history length;
- per recorded session (`analyze_session`): every analyzer over the full
  sample sequence, assembled into a `SessionReport`.

All computation is synchronous and pure with respect to the history: the
analyzer only reads sample snapshots. The only state it owns is the
architecture baseline and a bounded trend cache.
"""

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from gpuscope.analyzers.bottleneck import Bottleneck, BottleneckDetector
from gpuscope.analyzers.cache import TrendCache
from gpuscope.analyzers.efficiency import EfficiencyCalculator
from gpuscope.analyzers.report import SessionReport
from gpuscope.analyzers.session_metrics import (
    calculate_session_metrics,
    session_recommendations,
)
from gpuscope.analyzers.trend import TrendAnalyzer, TrendReport
from gpuscope.database.history import TelemetryHistory
from gpuscope.loggers.error_log import get_error_logger
from gpuscope.runtime.settings import AnalysisSettings
from gpuscope.samplers.schema.telemetry import ArchitectureBaseline, TelemetrySample
from gpuscope.session import get_session_id

HistoryLike = Union[TelemetryHistory, Sequence[TelemetrySample]]


@dataclass(frozen=True)
class TickAnalysis:
    """Per-tick output: optional trends, possibly empty live bottlenecks."""

    trends: Optional[TrendReport] = None
    bottlenecks: List[Bottleneck] = field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "trends": self.trends.to_wire() if self.trends is not None else None,
            "bottlenecks": [b.to_wire() for b in self.bottlenecks],
        }


def _as_samples(history: HistoryLike) -> List[TelemetrySample]:
    if isinstance(history, TelemetryHistory):
        return history.samples()
    return list(history)


class PerformanceAnalyzer:
    """
    Coordinates the analysis components.

    Parameters
    ----------
    settings : AnalysisSettings, optional
        Thresholds and guards for every analyzer.
    baseline : ArchitectureBaseline, optional
        Device baseline; may also be supplied later via `set_baseline`.
    """

    def __init__(
        self,
        settings: Optional[AnalysisSettings] = None,
        baseline: Optional[ArchitectureBaseline] = None,
    ):
        self.settings = settings or AnalysisSettings()
        self.trend_analyzer = TrendAnalyzer(self.settings.trend)
        self.bottleneck_detector = BottleneckDetector(self.settings.bottleneck)
        self.efficiency_calculator = EfficiencyCalculator(self.settings.efficiency)
        self.cache: TrendCache[TrendReport] = TrendCache(self.settings.cache_max_entries)
        self.baseline: Optional[ArchitectureBaseline] = None
        self.logger = get_error_logger("PerformanceAnalyzer")
        if baseline is not None:
            self.set_baseline(baseline)

    def set_baseline(self, baseline: Optional[ArchitectureBaseline]) -> None:
        """Share the baseline (read-only) with every analyzer."""
        self.baseline = baseline
        self.bottleneck_detector.set_baseline(baseline)
        self.efficiency_calculator.set_baseline(baseline)
        self.logger.debug(
            "[GPUScope] Architecture baseline set: %s",
            baseline.name if baseline is not None else None,
        )

    # ------------------------------------------------------------------
    # Real-time path
    # ------------------------------------------------------------------
    def analyze_trends(self, history: HistoryLike) -> Optional[TrendReport]:
        """
        Trends over the current history, memoized by
        ``(history length, last timestamp)``.

        Returns None below `min_realtime_history` samples or while the
        trend window is not yet filled.
        """
        samples = _as_samples(history)
        if len(samples) < self.settings.min_realtime_history:
            return None

        key = (len(samples), samples[-1].timestamp)
        if self.cache.contains(key):
            return self.cache.get(key)

        trends = self.trend_analyzer.analyze(samples)
        self.cache.put(key, trends)
        return trends

    def detect_live_bottlenecks(self, history: HistoryLike) -> List[Bottleneck]:
        """Bottlenecks over the samples within `live_window_ms` of the latest one."""
        samples = _as_samples(history)
        if len(samples) < self.settings.min_realtime_history:
            return []
        cutoff = samples[-1].timestamp - self.settings.live_window_ms
        recent = [s for s in samples if s.timestamp >= cutoff]
        return self.bottleneck_detector.analyze_window(recent)

    def on_tick(self, history: HistoryLike) -> TickAnalysis:
        samples = _as_samples(history)
        if len(samples) < self.settings.min_realtime_history:
            return TickAnalysis()
        return TickAnalysis(
            trends=self.analyze_trends(samples),
            bottlenecks=self.detect_live_bottlenecks(samples),
        )

    # ------------------------------------------------------------------
    # Session path
    # ------------------------------------------------------------------
    def analyze_session(
        self, samples: HistoryLike, session_id: Optional[str] = None
    ) -> Optional[SessionReport]:
        """
        Full analysis of a recorded session.

        Returns None for an empty session.
        """
        samples = _as_samples(samples)
        if not samples:
            return None

        self.logger.debug("[GPUScope] Analyzing session with %d data points", len(samples))
        session_metrics = calculate_session_metrics(samples)
        return SessionReport(
            session_metrics=session_metrics,
            trends=self.trend_analyzer.analyze_session(samples),
            bottlenecks=self.bottleneck_detector.analyze_session(samples),
            efficiency=self.efficiency_calculator.analyze_session(samples),
            recommendations=session_recommendations(session_metrics),
            session_id=session_id if session_id is not None else get_session_id(),
            generated_at=datetime.datetime.now().isoformat(timespec="seconds"),
            baseline=self.baseline,
        )
