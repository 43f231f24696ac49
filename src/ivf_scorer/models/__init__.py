"""
Data Models
===========

Data models for ivf-scorer.

This module re-exports all data models for convenient access.

Models:
    Container:
        - FrameRecord: One physical frame (offset, length)
        - StreamInfo: Parsed header + pts catalogue

    Recognition:
        - RecognizedText: Raw recognizer output
        - RecognitionResult: Per-frame clock recognition outcome

    Repair:
        - StreamRole: Reference or degraded
        - RepairedStream: Written output file

    Report:
        - PooledMetrics, VmafLog, VmafFrame: libvmaf log
        - SeriesPoint, SeriesDocument: Down-sampled series
        - ScoreReport: Final report
"""

from ivf_scorer.models.container import Catalogue, FrameRecord, StreamInfo
from ivf_scorer.models.recognition import (
    UNRECOGNIZED,
    RecognitionResult,
    RecognizedText,
)
from ivf_scorer.models.repair import RepairedStream, StreamRole
from ivf_scorer.models.report import (
    PooledMetrics,
    ScoreReport,
    SeriesDocument,
    SeriesPoint,
    VmafFrame,
    VmafLog,
)

__all__ = [
    # Container
    "Catalogue",
    "FrameRecord",
    "StreamInfo",
    # Recognition
    "UNRECOGNIZED",
    "RecognizedText",
    "RecognitionResult",
    # Repair
    "StreamRole",
    "RepairedStream",
    # Report
    "PooledMetrics",
    "VmafFrame",
    "VmafLog",
    "SeriesPoint",
    "SeriesDocument",
    "ScoreReport",
]
