from typing import Any


def fmt_percent(x):
    try:
        return f"{float(x):.1f}%"
    except Exception:
        return "N/A"


def fmt_ratio(x):
    try:
        return f"{float(x):.2f}"
    except Exception:
        return "N/A"


def fmt_watts(x):
    try:
        return f"{float(x):.1f} W"
    except Exception:
        return "N/A"


def fmt_celsius(x):
    try:
        return f"{float(x):.1f}°C"
    except Exception:
        return "N/A"


def fmt_mhz(x):
    try:
        return f"{float(x):.0f} MHz"
    except Exception:
        return "N/A"


def fmt_mem(num_bytes: Any) -> str:
    """
    Format a byte value into a human-friendly string (KB, MB, GB).
    Always uses binary units (1 KB = 1024 B).
    """
    try:
        v = float(num_bytes)
    except (TypeError, ValueError):
        return "N/A"

    units = ["B", "KB", "MB", "GB", "TB"]
    idx = 0
    while v >= 1024 and idx < len(units) - 1:
        v /= 1024.0
        idx += 1

    if v >= 100 or idx == 0:
        return f"{v:.0f} {units[idx]}"
    elif v >= 10:
        return f"{v:.1f} {units[idx]}"
    else:
        return f"{v:.2f} {units[idx]}"


def fmt_time_run(ms: float) -> str:
    """
    Format session durations given in milliseconds.
    """
    if ms <= 0:
        return "—"

    if ms < 1000.0:
        return f"{ms:.1f} ms"

    seconds = ms / 1000.0
    if seconds < 60.0:
        return f"{seconds:.2f} s"

    minutes = seconds / 60.0
    if minutes < 60.0:
        return f"{minutes:.2f} min"

    hours = minutes / 60.0
    return f"{hours:.2f} h"
