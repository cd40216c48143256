"""
Live telemetry renderer.

Presentation only: shows the latest validated sample of the history as a
Rich panel. No computation beyond per-SM aggregates for display.
"""

import shutil
from typing import Any, Dict, Optional

from rich.panel import Panel
from rich.table import Table

from gpuscope.database.history import TelemetryHistory
from gpuscope.renderers.base_renderer import BaseRenderer
from gpuscope.renderers.display.layout import TELEMETRY_LAYOUT
from gpuscope.utils.formatting import (
    fmt_celsius,
    fmt_mem,
    fmt_mhz,
    fmt_percent,
    fmt_watts,
)


class TelemetryRenderer(BaseRenderer):
    """Renderer for the latest GPU telemetry sample."""

    NAME = "Telemetry"

    def __init__(self, history: TelemetryHistory, device_name: Optional[str] = None):
        super().__init__(name=self.NAME, layout_section_name=TELEMETRY_LAYOUT)
        self._history = history
        self._device_name = device_name or "GPU"

    def compute_snapshot(self) -> Dict[str, Any]:
        latest = self._history.latest()
        if latest is None:
            return {}
        sm = latest.sm_utilizations
        return {
            "util_gpu": latest.util_gpu,
            "util_memory": latest.util_memory,
            "temperature": latest.temperature,
            "power": latest.power,
            "sm_clock": latest.sm_clock,
            "memory_clock": latest.memory_clock,
            "memory_used": latest.memory_used,
            "memory_total": latest.memory_total,
            "memory_bandwidth": latest.memory_bandwidth,
            "fan_speed": latest.fan_speed,
            "pcie_utilization": latest.pcie_utilization,
            "sm_active": sum(1 for u in sm if u > 0),
            "sm_count": len(sm),
            "sm_util_max": max(sm) if sm else None,
            "samples": len(self._history),
        }

    def get_panel_renderable(self) -> Panel:
        data = self.compute_snapshot()
        self._latest_data = data

        table = Table.grid(padding=(0, 2))
        table.add_column(justify="left", style="white")
        table.add_column(justify="left", style="white")

        if not data:
            table.add_row("[bold green]GPU[/bold green]", "[red]No samples yet[/red]")
        else:
            table.add_row(
                f"[bold green]UTIL[/bold green] {fmt_percent(data['util_gpu'])}",
                f"[bold green]MEM UTIL[/bold green] {fmt_percent(data['util_memory'])}",
            )
            table.add_row(
                f"[bold green]TEMP[/bold green] {fmt_celsius(data['temperature'])}",
                f"[bold green]POWER[/bold green] {fmt_watts(data['power'])}",
            )
            table.add_row(
                f"[bold green]SM CLK[/bold green] {fmt_mhz(data['sm_clock'])}",
                f"[bold green]MEM CLK[/bold green] {fmt_mhz(data['memory_clock'])}",
            )
            table.add_row(
                f"[bold green]VRAM[/bold green] "
                f"{fmt_mem(data['memory_used'])}/{fmt_mem(data['memory_total'])}",
                f"[bold green]BW[/bold green] {data['memory_bandwidth']:.0f} GB/s",
            )
            table.add_row(
                f"[bold green]FAN[/bold green] {fmt_percent(data['fan_speed'])}",
                f"[bold green]SMs ACTIVE[/bold green] {data['sm_active']}/{data['sm_count']}",
            )
            table.add_row(
                f"[bold green]SM PEAK[/bold green] {fmt_percent(data['sm_util_max'])}",
                f"[bold green]PCIe[/bold green] {fmt_percent(data['pcie_utilization'])}",
            )
            table.add_row(f"[bold green]SAMPLES[/bold green] {data['samples']}", "")

        cols, _ = shutil.get_terminal_size()
        panel_width = min(max(80, int(cols * 0.75)), 100)

        return Panel(
            table,
            title=f"[bold cyan]{self._device_name} Telemetry[/bold cyan]",
            title_align="center",
            border_style="cyan",
            width=panel_width,
        )
