from rich.console import Console

from conftest import make_sample, make_series
from gpuscope.analyzers.performance_analyzer import PerformanceAnalyzer, TickAnalysis
from gpuscope.database.history import TelemetryHistory
from gpuscope.renderers.analysis_renderer import AnalysisRenderer
from gpuscope.renderers.telemetry_renderer import TelemetryRenderer
from gpuscope.utils.formatting import fmt_mem, fmt_percent, fmt_time_run


def _render(renderable):
    console = Console(record=True, width=120)
    console.print(renderable)
    return console.export_text()


class TestFormatting:

    def test_fmt_mem_binary_units(self):
        assert fmt_mem(512) == "512 B"
        assert fmt_mem(24 * 1024 ** 3) == "24.0 GB"
        assert fmt_mem("x") == "N/A"

    def test_fmt_percent(self):
        assert fmt_percent(42) == "42.0%"
        assert fmt_percent(None) == "N/A"

    def test_fmt_time_run(self):
        assert fmt_time_run(0) == "—"
        assert fmt_time_run(250.0) == "250.0 ms"
        assert fmt_time_run(90_000.0) == "1.50 min"


class TestTelemetryRenderer:

    def test_empty_history(self):
        renderer = TelemetryRenderer(TelemetryHistory(), "Test GPU")
        assert renderer.compute_snapshot() == {}
        assert "No samples yet" in _render(renderer.get_panel_renderable())

    def test_snapshot(self):
        history = TelemetryHistory()
        history.append(make_sample(smUtilizations=[0.0, 50.0, 90.0, 10.0], utilGPU=55.0))
        renderer = TelemetryRenderer(history, "Test GPU")
        snap = renderer.compute_snapshot()
        assert snap["util_gpu"] == 55.0
        assert snap["sm_active"] == 3
        assert snap["sm_count"] == 4
        assert snap["sm_util_max"] == 90.0
        assert snap["samples"] == 1

        text = _render(renderer.get_panel_renderable())
        assert "Test GPU Telemetry" in text
        assert "55.0%" in text
        assert "SM PEAK 90.0%" in text
        assert "PCIe 20.0%" in text
        assert "SAMPLES 1" in text


class TestAnalysisRenderer:

    def test_waiting_for_samples(self):
        renderer = AnalysisRenderer()
        renderer.update(TickAnalysis())
        text = _render(renderer.get_panel_renderable())
        assert "Collecting samples" in text
        assert "No bottlenecks detected" in text

    def test_trends_and_bottlenecks(self):
        tick = PerformanceAnalyzer().on_tick(
            make_series(50, utilGPU=95.0, temperature=lambda i: 50.0 + 0.5 * i)
        )
        renderer = AnalysisRenderer()
        renderer.update(tick)
        text = _render(renderer.get_panel_renderable())
        assert "Overall: thermal_pressure" in text
        assert "gpu_saturated" in text
        assert "Temperature is trending upward" in text
