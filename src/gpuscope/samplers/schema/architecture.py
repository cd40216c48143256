"""Known architecture baselines.

Functions
---------
get_baseline
    Table-based baseline lookup by (sub)string device name.
known_architectures
    Names of all devices in the table.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from gpuscope.samplers.schema.telemetry import ArchitectureBaseline

MIB = 1024 * 1024


def _get_baseline_table() -> Dict[str, ArchitectureBaseline]:
    """Return the device baseline table.

    Notes
    -----
    Values are from public NVIDIA specifications. ``max_power`` is the
    default board power limit, ``base_clock`` the SM base clock.
    """
    return {
        "NVIDIA RTX 4090": ArchitectureBaseline(
            name="NVIDIA RTX 4090",
            sm_count=128,
            cores_per_sm=128,
            memory_bus_width=384,
            max_power=450.0,
            base_clock=2235.0,
            l2_cache_size=72 * MIB,
        ),
        "NVIDIA RTX 3090": ArchitectureBaseline(
            name="NVIDIA RTX 3090",
            sm_count=82,
            cores_per_sm=128,
            memory_bus_width=384,
            max_power=350.0,
            base_clock=1395.0,
            l2_cache_size=6 * MIB,
        ),
        "NVIDIA A100": ArchitectureBaseline(
            name="NVIDIA A100",
            sm_count=108,
            cores_per_sm=64,
            memory_bus_width=5120,
            max_power=400.0,
            base_clock=1065.0,
            l2_cache_size=40 * MIB,
        ),
        "NVIDIA H100 SXM": ArchitectureBaseline(
            name="NVIDIA H100 SXM",
            sm_count=132,
            cores_per_sm=128,
            memory_bus_width=5120,
            max_power=700.0,
            base_clock=1590.0,
            l2_cache_size=50 * MIB,
        ),
    }


def get_baseline(device_name: str) -> Optional[ArchitectureBaseline]:
    """Return the baseline of a known device, or ``None``.

    Parameters
    ----------
    device_name : str
        Friendly device name. Matching is case-insensitive and accepts
        either direction of substring containment, so ``"4090"`` and
        ``"NVIDIA RTX 4090 24GB"`` both resolve.
    """
    needle = device_name.strip().lower()
    if not needle:
        return None
    for key, baseline in _get_baseline_table().items():
        hay = key.lower()
        if needle in hay or hay in needle:
            return baseline
    return None


def known_architectures() -> List[str]:
    return list(_get_baseline_table())
