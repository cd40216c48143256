"""
Session report structure and JSON export.

The report is a plain container of analyzer outputs; `to_wire()` turns it
into JSON-serializable data mirroring the shapes consumed by report and
export collaborators:

    {
      "sessionId": str,
      "generatedAt": str (ISO-8601),
      "baseline": {...} | null,
      "sessionMetrics": {...},
      "trends": [chunk, ...],
      "bottlenecks": [aggregated, ...],
      "efficiency": {"overall", "trends", "recommendations"},
      "recommendations": [...]
    }

Export is a pass-through serialization with `msgspec.json`; there is no
bit-exact format contract beyond valid JSON with the shapes above.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import msgspec

from gpuscope.analyzers.bottleneck import AggregatedBottleneck
from gpuscope.analyzers.efficiency import EfficiencyAnalysis
from gpuscope.analyzers.trend import TrendChunk
from gpuscope.samplers.schema.telemetry import ArchitectureBaseline


@dataclass(frozen=True)
class SessionReport:
    session_metrics: Dict[str, Any]
    trends: List[TrendChunk]
    bottlenecks: List[AggregatedBottleneck]
    efficiency: EfficiencyAnalysis
    recommendations: List[Dict[str, str]]
    session_id: str = ""
    generated_at: str = ""
    baseline: Optional[ArchitectureBaseline] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "sessionId": self.session_id,
            "generatedAt": self.generated_at,
            "baseline": self.baseline.to_wire() if self.baseline is not None else None,
            "sessionMetrics": self.session_metrics,
            "trends": [c.to_wire() for c in self.trends],
            "bottlenecks": [b.to_wire() for b in self.bottlenecks],
            "efficiency": self.efficiency.to_wire(),
            "recommendations": [dict(r) for r in self.recommendations],
        }
        data.update(self.extra)
        return data


def encode_report(report: Union[SessionReport, Dict[str, Any]]) -> bytes:
    wire = report.to_wire() if isinstance(report, SessionReport) else report
    return msgspec.json.encode(wire)


def decode_report(payload: Union[bytes, str]) -> Dict[str, Any]:
    """
    Raises
    ------
    msgspec.DecodeError
        If `payload` is not valid JSON.
    """
    return msgspec.json.decode(payload)


def export_report(report: Union[SessionReport, Dict[str, Any]], path: Union[str, Path]) -> Path:
    """Write the report as pretty-printed JSON and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(msgspec.json.format(encode_report(report), indent=2))
    return path


def load_report(path: Union[str, Path]) -> Dict[str, Any]:
    return decode_report(Path(path).read_bytes())
