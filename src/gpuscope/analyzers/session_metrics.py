"""
Session metrics computation layer.

This module contains *pure aggregation logic* for a recorded session.
No rendering, formatting, or UI dependencies.

Responsibilities
----------------
- Duration, sample count and sampling rate of the session
- Per-series averages, extremes, stability, peaks and coverage
- Declarative session-level recommendations
"""

from typing import Any, Dict, List, Sequence

import numpy as np

from gpuscope.samplers.schema.telemetry import SERIES_ATTRS, TelemetrySample, series

PEAK_THRESHOLD = 0.1
MAX_REPORTED_PEAKS = 10
THEORETICAL_RANGE = 100.0


def calculate_stability(values: Sequence[float]) -> Dict[str, float]:
    """
    Population variance / std and a 0-1 stability score
    (1 = perfectly stable).
    """
    arr = np.asarray(values, dtype=float)
    mean = float(np.mean(arr))
    variance = float(np.var(arr))
    std = float(np.sqrt(variance))
    return {
        "variance": variance,
        "standardDeviation": std,
        "coefficientOfVariation": std / mean if mean != 0 else 0.0,
        "stability": 1.0 - min(1.0, std / (mean or 1.0)),
    }


def detect_peaks(values: Sequence[float], threshold: float = PEAK_THRESHOLD) -> Dict[str, Any]:
    """Strict local maxima above ``mean * (1 + threshold)``."""
    n = len(values)
    if n == 0:
        return {"count": 0, "peaks": [], "frequency": 0.0}

    peak_threshold = float(np.mean(values)) * (1 + threshold)
    peaks: List[Dict[str, float]] = []
    for i in range(1, n - 1):
        v = values[i]
        if v > values[i - 1] and v > values[i + 1] and v > peak_threshold:
            peaks.append(
                {
                    "index": i,
                    "value": v,
                    "prominence": v - min(values[i - 1], values[i + 1]),
                }
            )

    return {
        "count": len(peaks),
        "peaks": peaks[:MAX_REPORTED_PEAKS],
        "frequency": len(peaks) / (n / 100.0),
    }


def calculate_coverage(values: Sequence[float]) -> Dict[str, float]:
    """How much of a 0-100 range the series spans."""
    lo = float(np.min(values))
    hi = float(np.max(values))
    span = hi - lo
    if span == 0:
        return {"range": 0.0, "utilization": 0.0}
    return {
        "range": span,
        "utilization": span / THEORETICAL_RANGE,
        "dynamicRange": hi / max(1.0, lo),
    }


def calculate_session_metrics(samples: Sequence[TelemetrySample]) -> Dict[str, Any]:
    """
    Compute session-wide statistics.

    Returns
    -------
    Dict[str, Any]
        ``duration`` (ms), ``dataPoints``, ``samplingRate`` (samples/s) and
        per-series ``averages``, ``extremes``, ``stability``, ``peaks``,
        ``coverage``.
    """
    metrics: Dict[str, Any] = {
        "duration": 0.0,
        "dataPoints": len(samples),
        "samplingRate": 0.0,
        "coverage": {},
        "stability": {},
        "peaks": {},
        "averages": {},
        "extremes": {},
    }
    if not samples:
        return metrics

    duration = samples[-1].timestamp - samples[0].timestamp
    metrics["duration"] = duration
    metrics["samplingRate"] = len(samples) / (duration / 1000.0) if duration > 0 else 0.0

    for key in SERIES_ATTRS:
        values = series(samples, key)
        metrics["averages"][key] = float(np.mean(values))
        metrics["extremes"][key] = {"min": float(np.min(values)), "max": float(np.max(values))}
        metrics["stability"][key] = calculate_stability(values)
        metrics["peaks"][key] = detect_peaks(values)
        metrics["coverage"][key] = calculate_coverage(values)

    return metrics


def session_recommendations(metrics: Dict[str, Any]) -> List[Dict[str, str]]:
    """Threshold checks over session metrics, in a fixed order."""
    averages = metrics.get("averages") or {}
    stability = metrics.get("stability") or {}
    if not averages:
        return []

    recs: List[Dict[str, str]] = []

    if averages["utilGPU"] < 50:
        recs.append(
            {
                "type": "utilization",
                "priority": "high",
                "description": "GPU utilization is low",
                "suggestion": "Consider increasing workload or optimizing kernel launches",
                "impact": "performance",
            }
        )

    if stability["utilGPU"]["stability"] < 0.7:
        recs.append(
            {
                "type": "stability",
                "priority": "medium",
                "description": "GPU utilization is highly variable",
                "suggestion": "Check for CPU bottlenecks or optimize workload distribution",
                "impact": "consistency",
            }
        )

    if averages["temperature"] > 80:
        recs.append(
            {
                "type": "thermal",
                "priority": "high",
                "description": "Average temperature is high",
                "suggestion": "Improve cooling or reduce power target",
                "impact": "reliability",
            }
        )

    if averages["utilMemory"] > 90:
        recs.append(
            {
                "type": "memory",
                "priority": "medium",
                "description": "Memory utilization is very high",
                "suggestion": "Optimize memory usage or consider more GPU memory",
                "impact": "performance",
            }
        )

    return recs
