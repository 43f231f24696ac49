"""
Recovery Module
===============

Timestamp and identity recovery from burned-in frame overlays.

Components:
    - TimestampRecovery: Runs recognition over a file and re-keys its catalogue
    - reconcile: Linear forward fill of unrecognized frames
    - chunked_gather: Bounded, order-preserving task execution
"""

from ivf_scorer.recovery.pool import chunked_gather
from ivf_scorer.recovery.recovery import (
    TimestampRecovery,
    clock_to_pts,
    parse_clock,
    reconcile,
    rekey,
)


__all__ = [
    "TimestampRecovery",
    "chunked_gather",
    "clock_to_pts",
    "parse_clock",
    "reconcile",
    "rekey",
]
