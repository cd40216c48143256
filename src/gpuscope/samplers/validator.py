"""
Telemetry sample validation.

A cheap gate in front of the history buffer: records are accepted or
rejected as a whole. No clamping, no defaulting, no repair. Callers drop
rejected records silently.
"""

import math
from numbers import Real
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from gpuscope.samplers.schema.telemetry import (
    SCALAR_FIELDS,
    SM_UTILIZATIONS_KEY,
    ArchitectureBaseline,
    TelemetrySample,
)

# wire key -> (low, high); None means unbounded above.
FIELD_RANGES = {
    "timestamp": (0.0, None),
    "utilGPU": (0.0, 100.0),
    "utilMemory": (0.0, 100.0),
    "temperature": (0.0, 120.0),
    "power": (0.0, 1000.0),
    "smClock": (0.0, None),
    "memoryClock": (0.0, None),
    "memoryUsed": (0.0, None),
    "memoryTotal": (0.0, None),
    "memoryBandwidth": (0.0, None),
    "pcieUtilization": (0.0, 100.0),
    "fanSpeed": (0.0, 100.0),
}

SM_UTILIZATION_RANGE: Tuple[float, float] = (0.0, 100.0)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid reading
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def _in_range(value: float, low: float, high: Optional[float]) -> bool:
    if value < low:
        return False
    return high is None or value <= high


class TelemetryValidator:
    """
    Validate telemetry records before they enter history.

    Parameters
    ----------
    baseline : ArchitectureBaseline, optional
        When set, the per-SM utilization sequence must have exactly
        `baseline.sm_count` entries.
    """

    def __init__(self, baseline: Optional[ArchitectureBaseline] = None):
        self.baseline = baseline

    def set_baseline(self, baseline: Optional[ArchitectureBaseline]) -> None:
        self.baseline = baseline

    def validate(self, record: Union[TelemetrySample, Mapping[str, Any]]) -> bool:
        """
        Return True iff every required field is a finite number within
        its documented range.
        """
        if isinstance(record, TelemetrySample):
            record = record.to_wire()
        if not isinstance(record, Mapping):
            return False

        for key, _attr in SCALAR_FIELDS:
            value = record.get(key)
            if not _is_number(value):
                return False
            low, high = FIELD_RANGES[key]
            if not _in_range(value, low, high):
                return False

        # must be re-iterable; from_wire reads it again after validation
        sm_utils = record.get(SM_UTILIZATIONS_KEY)
        if not isinstance(sm_utils, Sequence) or isinstance(sm_utils, (str, bytes)):
            return False

        low, high = SM_UTILIZATION_RANGE
        for value in sm_utils:
            if not _is_number(value) or not _in_range(value, low, high):
                return False

        if self.baseline is not None and self.baseline.sm_count > 0:
            if len(sm_utils) != self.baseline.sm_count:
                return False

        return True


def validate(
    record: Union[TelemetrySample, Mapping[str, Any]],
    baseline: Optional[ArchitectureBaseline] = None,
) -> bool:
    """Module-level shortcut for `TelemetryValidator(baseline).validate(record)`."""
    return TelemetryValidator(baseline).validate(record)
