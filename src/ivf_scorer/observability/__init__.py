"""
Observability Module
====================

Report-side aggregation of scoring results.

Components:
    - summarize: One-second bucketed means of a per-frame series
    - build_series_document: Series + pooled stats for chart rendering
"""

from ivf_scorer.observability.aggregator import (
    build_series_document,
    summarize,
    window_size,
)


__all__ = [
    "build_series_document",
    "summarize",
    "window_size",
]
