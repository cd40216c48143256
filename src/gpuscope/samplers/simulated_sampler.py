import math
import time
from typing import Any, Callable, Dict, Optional

import numpy as np

from .base_sampler import BaseSampler
from gpuscope.samplers.schema.telemetry import ArchitectureBaseline

GIB = 1024 * 1024 * 1024
MIB = 1024 * 1024


class SimulatedSampler(BaseSampler):
    """
    Telemetry source producing realistic-looking GPU readings without
    hardware access.

    Workload intensity, memory pressure and thermal cycling follow slow
    sinusoids of wall-clock time with uniform noise on top; per-SM
    utilization scatters around the workload intensity. The noise comes
    from a `numpy.random.Generator`, so a fixed `seed` plus an injected
    `clock` gives a reproducible stream.
    """

    def __init__(
        self,
        baseline: Optional[ArchitectureBaseline] = None,
        seed: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
        memory_total: float = 24 * GIB,
    ) -> None:
        super().__init__(sampler_name="SimulatedSampler")
        self.baseline = baseline
        self.memory_total = float(memory_total)
        self._rng = np.random.default_rng(seed)
        # milliseconds
        self._clock = clock or (lambda: time.time() * 1000.0)

    @property
    def sm_count(self) -> int:
        return self.baseline.sm_count if self.baseline is not None else 0

    def _noise(self, scale: float, centered: bool = True) -> float:
        u = float(self._rng.random())
        return (u - 0.5) * scale if centered else u * scale

    def sample(self) -> Dict[str, Any]:
        now_ms = float(self._clock())
        base_time = (now_ms / 1000.0) * 0.1

        workload = max(0.0, math.sin(base_time * 0.5) * 0.6 + 0.4)
        memory_pressure = max(0.0, math.cos(base_time * 0.3) * 0.4 + 0.5)
        thermal_cycling = math.sin(base_time * 0.1) * 0.2 + 0.8

        sm_base = workload * 100.0
        sm_utilizations = [
            max(0.0, min(100.0, sm_base + self._noise(20.0)))
            for _ in range(self.sm_count)
        ]

        # values are clamped to the ranges a real device can report
        return {
            "timestamp": now_ms,
            "utilGPU": max(0.0, min(100.0, workload * 100.0 + self._noise(10.0))),
            "utilMemory": max(0.0, min(100.0, memory_pressure * 100.0 + self._noise(8.0))),
            "temperature": 40.0 + thermal_cycling * 35.0 + workload * 20.0 + self._noise(3.0, centered=False),
            "power": 100.0 + workload * 350.0 + self._noise(30.0, centered=False),
            "smClock": 1200.0 + workload * 800.0 + self._noise(100.0, centered=False),
            "memoryClock": 6000.0 + memory_pressure * 3000.0 + self._noise(200.0, centered=False),
            "memoryUsed": (6000.0 + memory_pressure * 6000.0) * MIB,
            "memoryTotal": self.memory_total,
            "smUtilizations": sm_utilizations,
            "memoryBandwidth": memory_pressure * 900.0 + self._noise(50.0, centered=False),
            "pcieUtilization": min(100.0, workload * 80.0 + self._noise(15.0, centered=False)),
            "fanSpeed": min(100.0, max(30.0, thermal_cycling * 100.0 + workload * 50.0)),
        }
