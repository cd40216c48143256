"""
Live analysis renderer.

Shows the latest per-tick analysis (trends and live bottlenecks) as a
Rich panel. All analysis is done by `PerformanceAnalyzer`; this class only
keeps the most recent `TickAnalysis` for display.
"""

from typing import Optional

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gpuscope.analyzers.performance_analyzer import TickAnalysis
from gpuscope.renderers.base_renderer import BaseRenderer
from gpuscope.renderers.display.layout import ANALYSIS_LAYOUT

SEVERITY_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "green",
}

DIRECTION_ARROWS = {"increasing": "↑", "decreasing": "↓", "stable": "→"}


class AnalysisRenderer(BaseRenderer):
    NAME = "Analysis"

    def __init__(self):
        super().__init__(name=self.NAME, layout_section_name=ANALYSIS_LAYOUT)
        self._latest: Optional[TickAnalysis] = None

    def update(self, analysis: TickAnalysis) -> None:
        self._latest = analysis
        self._latest_data = analysis.to_wire()

    def _trend_table(self, analysis: TickAnalysis) -> Table:
        table = Table(title="Trends", expand=True, show_edge=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Dir", justify="center")
        table.add_column("Slope", justify="right")
        table.add_column("Strength", justify="right")
        table.add_column("Next", justify="right")

        trends = analysis.trends
        for metric, result in trends.metrics.items():
            nxt = f"{result.prediction[0]:.1f}" if result.prediction else "—"
            table.add_row(
                metric,
                DIRECTION_ARROWS.get(result.direction, "?"),
                f"{result.slope:+.3f}",
                f"{result.strength:.2f}",
                nxt,
            )
        return table

    def _bottleneck_table(self, analysis: TickAnalysis) -> Table:
        table = Table(title="Bottlenecks", expand=True, show_edge=False)
        table.add_column("Severity")
        table.add_column("Type", style="cyan")
        table.add_column("Confidence", justify="right")
        table.add_column("Description")
        for b in analysis.bottlenecks:
            style = SEVERITY_STYLES.get(b.severity, "white")
            table.add_row(
                f"[{style}]{b.severity.upper()}[/{style}]",
                b.type,
                f"{b.confidence:.2f}",
                b.description,
            )
        return table

    def get_panel_renderable(self) -> Panel:
        analysis = self._latest
        parts = []
        if analysis is None or analysis.trends is None:
            parts.append(Text("Collecting samples for trend analysis...", justify="center"))
        else:
            parts.append(
                Text(
                    f"Overall: {analysis.trends.overall.performance}",
                    style="bold",
                    justify="center",
                )
            )
            parts.append(self._trend_table(analysis))
            for alert in analysis.trends.overall.alerts:
                style = SEVERITY_STYLES.get(alert.severity, "white")
                parts.append(Text(f"⚠ {alert.message}", style=style))

        if analysis is not None and analysis.bottlenecks:
            parts.append(self._bottleneck_table(analysis))
        else:
            parts.append(Text("No bottlenecks detected", style="green"))

        return Panel(
            Group(*parts),
            title="[bold cyan]Performance Analysis[/bold cyan]",
            title_align="center",
            border_style="cyan",
        )
