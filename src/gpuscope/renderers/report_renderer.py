"""
Session report renderer.

Renders a session report in wire form (as produced by
`SessionReport.to_wire()` or loaded from an export) into Rich tables, so
the same code serves `gpuscope analyze` and `gpuscope inspect`.
"""

from typing import Any, Dict, List

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gpuscope.renderers.analysis_renderer import SEVERITY_STYLES
from gpuscope.utils.formatting import fmt_ratio, fmt_time_run


def _metrics_table(metrics: Dict[str, Any]) -> Table:
    table = Table(title="Session Metrics", expand=True)
    table.add_column("Series", style="cyan")
    table.add_column("Avg", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Stability", justify="right")
    table.add_column("Peaks", justify="right")

    for key, avg in (metrics.get("averages") or {}).items():
        ext = metrics["extremes"][key]
        table.add_row(
            key,
            f"{avg:.1f}",
            f"{ext['min']:.1f}",
            f"{ext['max']:.1f}",
            fmt_ratio(metrics["stability"][key]["stability"]),
            str(metrics["peaks"][key]["count"]),
        )
    return table


def _bottleneck_table(bottlenecks: List[Dict[str, Any]]) -> Table:
    table = Table(title="Bottlenecks", expand=True)
    table.add_column("Type", style="cyan")
    table.add_column("Severity")
    table.add_column("Occurrences", justify="right")
    table.add_column("Avg confidence", justify="right")
    table.add_column("Duration", justify="right")
    for b in bottlenecks:
        style = SEVERITY_STYLES.get(b["dominantSeverity"], "white")
        table.add_row(
            b["type"],
            f"[{style}]{b['dominantSeverity']}[/{style}]",
            str(b["occurrences"]),
            fmt_ratio(b["averageConfidence"]),
            fmt_time_run(b["totalDuration"]),
        )
    return table


def _efficiency_table(efficiency: Dict[str, Any]) -> Table:
    table = Table(title="Efficiency", expand=True)
    table.add_column("Factor", style="cyan")
    table.add_column("Score", justify="right")
    overall = efficiency.get("overall") or {}
    for key in (
        "computeEfficiency",
        "memoryEfficiency",
        "powerEfficiency",
        "thermalEfficiency",
        "overallEfficiency",
    ):
        if key in overall:
            table.add_row(key, f"{overall[key]:.1f}")
    return table


def _trend_lines(trends: List[Dict[str, Any]]) -> List[Text]:
    lines = []
    for chunk in trends:
        t = chunk.get("trends")
        if not t:
            continue
        lines.append(
            Text(
                f"chunk {chunk['chunkIndex']}: {t['overall']['performance']} "
                f"(util {t['utilGPU']['direction']}, temp {t['temperature']['direction']})"
            )
        )
    return lines


def _recommendation_lines(report: Dict[str, Any]) -> List[Text]:
    lines = []
    for rec in report.get("recommendations", []):
        lines.append(Text(f"[{rec['priority']}] {rec['description']}: {rec['suggestion']}"))
    for rec in (report.get("efficiency") or {}).get("recommendations", []):
        lines.append(
            Text(f"[{rec['priority']}] {rec['description']}: {'; '.join(rec['suggestions'])}")
        )
    return lines


def render_session_report(report: Dict[str, Any]) -> Panel:
    metrics = report.get("sessionMetrics") or {}
    header = Text(
        f"{metrics.get('dataPoints', 0)} samples over "
        f"{fmt_time_run(metrics.get('duration', 0.0))} "
        f"({metrics.get('samplingRate', 0.0):.1f} samples/s)",
        justify="center",
    )

    parts: List[Any] = [header, _metrics_table(metrics)]

    trend_lines = _trend_lines(report.get("trends") or [])
    if trend_lines:
        parts.append(Text("Trends", style="bold"))
        parts.extend(trend_lines)

    bottlenecks = report.get("bottlenecks") or []
    if bottlenecks:
        parts.append(_bottleneck_table(bottlenecks))
    else:
        parts.append(Text("No bottlenecks detected", style="green"))

    parts.append(_efficiency_table(report.get("efficiency") or {}))

    recs = _recommendation_lines(report)
    if recs:
        parts.append(Text("Recommendations", style="bold"))
        parts.extend(recs)

    title = report.get("sessionId") or "Session"
    return Panel(
        Group(*parts),
        title=f"[bold cyan]{title}[/bold cyan]",
        border_style="cyan",
    )
