"""
Metrics Aggregator
==================

Down-samples a per-frame VMAF series into one-second buckets for charts.

Derived from:
    - The per-frame entries of a libvmaf log
    - The pooled summary of the same log

Rendering is NOT done here; the SeriesDocument is the whole interface
handed to the chart renderer.
"""

import logging
from typing import List, Sequence

from ivf_scorer.models.report import PooledMetrics, SeriesDocument, SeriesPoint, VmafFrame


logger = logging.getLogger(__name__)


def window_size(frame_rate: float) -> int:
    """Frames per one-second bucket."""
    return max(1, int(round(frame_rate)))


def summarize(
    frames: Sequence[VmafFrame],
    frame_rate: float,
    metric: str = "vmaf",
) -> List[SeriesPoint]:
    """
    Bucket a per-frame series into one-second means.

    A bucket opens on every frame number divisible by the window size;
    each frame folds `value / window` into the current bucket, so a full
    bucket holds the mean of its window. A series that does not start on
    a boundary opens its first bucket at its first frame.

    Args:
        frames: Per-frame entries, in log order
        frame_rate: Stream frame rate
        metric: Metric name to read from each frame

    Returns:
        Buckets in insertion order
    """
    window = window_size(frame_rate)
    buckets: List[List[float]] = []

    for frame in frames:
        value = frame.metrics.get(metric)
        if value is None:
            continue
        if frame.frame_num % window == 0 or not buckets:
            buckets.append([frame.frame_num, value / window])
        else:
            buckets[-1][1] += value / window

    return [SeriesPoint(x=int(x), y=y) for x, y in buckets]


def build_series_document(
    title: str,
    frames: Sequence[VmafFrame],
    pooled: PooledMetrics,
    frame_rate: float,
    metric: str = "vmaf",
) -> SeriesDocument:
    """Bundle the bucketed series with the pooled min/max/mean."""
    points = summarize(frames, frame_rate, metric)
    logger.debug(f"Series '{title}': {len(frames)} frames -> {len(points)} buckets")
    return SeriesDocument(
        title=title,
        min=pooled.min,
        max=pooled.max,
        mean=pooled.mean,
        points=points,
    )
