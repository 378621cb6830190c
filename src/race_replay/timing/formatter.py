"""Lap-time text formatting for position boards."""

from __future__ import annotations

import math

_NO_TIME = "-"


def format_lap_time(seconds: float | None) -> str:
    """Format *seconds* as ``M:SS.mmm`` (or ``S.mmm`` under a minute).

    ``None``, zero and non-finite values render as ``-``.  Milliseconds are
    truncated, not rounded.
    """
    if seconds is None or not math.isfinite(seconds) or seconds <= 0:
        return _NO_TIME
    total_ms = int(seconds * 1000 + 1e-6)
    mins, rem_ms = divmod(total_ms, 60_000)
    secs, ms = divmod(rem_ms, 1000)
    if mins > 0:
        return f"{mins}:{secs:02d}.{ms:03d}"
    return f"{secs}.{ms:03d}"


def format_gap(delta_s: float | None) -> str:
    """Format a signed time difference, e.g. ``+0.412``."""
    if delta_s is None or not math.isfinite(delta_s):
        return _NO_TIME
    return f"{delta_s:+.3f}"
