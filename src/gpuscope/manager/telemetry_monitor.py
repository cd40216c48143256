import threading
from typing import Callable, List, Optional

from gpuscope.analyzers.performance_analyzer import PerformanceAnalyzer, TickAnalysis
from gpuscope.analyzers.report import SessionReport
from gpuscope.config import config
from gpuscope.database.history import TelemetryHistory
from gpuscope.database.history_writer import HistoryWriter
from gpuscope.loggers.error_log import get_error_logger, setup_error_logger
from gpuscope.renderers.analysis_renderer import AnalysisRenderer
from gpuscope.renderers.base_renderer import BaseRenderer
from gpuscope.renderers.display.cli_display_manager import (
    CLIDisplayManager,
    NullDisplayManager,
)
from gpuscope.renderers.telemetry_renderer import TelemetryRenderer
from gpuscope.runtime.settings import MonitorSettings
from gpuscope.samplers.base_sampler import BaseSampler
from gpuscope.samplers.schema.telemetry import ArchitectureBaseline, TelemetrySample
from gpuscope.samplers.validator import TelemetryValidator
from gpuscope.session import reset_session_id

TickCallback = Callable[[TelemetrySample, TickAnalysis], None]


class TelemetryMonitor:
    """
    Periodic telemetry driver.

    Each tick samples the source, validates the record, appends it to the
    history (and to the recording buffer while recording), runs the
    real-time analysis and updates the display. A tick is fully
    synchronous; the background thread only schedules ticks. Stopping
    the monitor stops scheduling; an in-flight tick always completes.
    """

    _DISPLAY = {
        "cli": CLIDisplayManager,
        "none": NullDisplayManager,
    }

    def __init__(
        self,
        sampler: BaseSampler,
        settings: Optional[MonitorSettings] = None,
        baseline: Optional[ArchitectureBaseline] = None,
        analyzer: Optional[PerformanceAnalyzer] = None,
        renderers: Optional[List[BaseRenderer]] = None,
    ):
        self.settings = settings or MonitorSettings()
        config.enable_logging = bool(self.settings.enable_logging)
        config.logs_dir = str(self.settings.logs_dir)
        config.session_id = self.settings.session_id

        setup_error_logger()
        self.logger = get_error_logger("TelemetryMonitor")

        try:
            self.display_manager = self._DISPLAY[self.settings.mode]
        except KeyError:
            raise ValueError(
                f"Unsupported mode: {self.settings.mode}. Choose from {list(self._DISPLAY)}"
            )

        self.sampler = sampler
        self.history = TelemetryHistory(self.settings.history_capacity)
        self.validator = TelemetryValidator(baseline)
        self.analyzer = analyzer or PerformanceAnalyzer(self.settings.analysis)
        if baseline is not None:
            self.analyzer.set_baseline(baseline)
        self.writer = HistoryWriter(self.history, logs_dir=self.settings.logs_dir)

        self.analysis_renderer = AnalysisRenderer()
        if renderers is None:
            device = baseline.name if baseline is not None else None
            renderers = [TelemetryRenderer(self.history, device), self.analysis_renderer]
        self.renderers = renderers

        self.latest_analysis = TickAnalysis()
        self.rejected_count = 0
        self._recording: Optional[List[TelemetrySample]] = None
        self._callbacks: List[TickCallback] = []

        self.interval_sec = self.settings.effective_period_ms / 1000.0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _safe(self, label: str, fn):
        try:
            return fn()
        except Exception as e:
            self.logger.error(f"[GPUScope] {label}: {e}")
            return None

    # ------------------------------------------------------------------
    # Baseline / callbacks
    # ------------------------------------------------------------------
    def set_baseline(self, baseline: Optional[ArchitectureBaseline]) -> None:
        self.validator.set_baseline(baseline)
        self.analyzer.set_baseline(baseline)

    def add_tick_callback(self, callback: TickCallback) -> None:
        self._callbacks.append(callback)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def ingest(self, record) -> Optional[TelemetrySample]:
        """
        Validate one raw record and append it to history.

        Returns the stored sample, or None if the record was rejected.
        """
        if not self.validator.validate(record):
            self.rejected_count += 1
            self.logger.debug("[GPUScope] Dropped invalid telemetry record")
            return None
        sample = record if isinstance(record, TelemetrySample) else TelemetrySample.from_wire(record)
        self.history.append(sample)
        if self._recording is not None:
            self._recording.append(sample)
        return sample

    def run_once(self) -> Optional[TickAnalysis]:
        """Run one synchronous tick. Returns None if no sample was stored."""
        record = self._safe(
            f"Sampler {self.sampler.__class__.__name__}.sample() failed", self.sampler.sample
        )
        if record is None:
            return None

        sample = self.ingest(record)
        if sample is None:
            return None

        analysis = self.analyzer.on_tick(self.history)
        self.latest_analysis = analysis
        self.analysis_renderer.update(analysis)

        self._safe("History writer flush failed", self.writer.flush)
        for cb in self._callbacks:
            self._safe(f"Tick callback {cb!r} failed", lambda cb=cb: cb(sample, analysis))
        self._run_renderers()
        self._safe("Display update failed", self.display_manager.update_display)
        return analysis

    def _run_renderers(self):
        for r in self.renderers:

            def register():
                self.display_manager.register_layout_content(
                    r.layout_section_name, r.get_panel_renderable
                )

            self._safe(f"Renderer {r.__class__.__name__} register failed", register)

    def _run(self):
        self._safe("Display start failed", self.display_manager.start_display)
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(self.interval_sec)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="GPUScopeMonitor", daemon=True
        )
        self._safe("Failed to start monitor thread", self._thread.start)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval_sec * 5 + 1.0)
            if self._thread.is_alive():
                self.logger.error(
                    "[GPUScope] WARNING: Monitor thread did not terminate within timeout."
                )
            self._thread = None
        self._safe("Display release failed", self.display_manager.release_display)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------
    @property
    def is_recording(self) -> bool:
        return self._recording is not None

    def start_recording(self) -> str:
        """Begin a new recording session and return its id."""
        self._recording = []
        if config.session_id:
            return config.session_id
        return reset_session_id()

    def stop_recording(self) -> List[TelemetrySample]:
        """Stop recording and return the recorded samples."""
        recorded = self._recording or []
        self._recording = None
        return recorded

    def analyze_recording(self, samples: Optional[List[TelemetrySample]] = None) -> Optional[SessionReport]:
        """
        Analyze a recorded session; defaults to the current history when
        no samples are given.
        """
        if samples is None:
            samples = self.history.samples()
        return self.analyzer.analyze_session(samples)
