"""
Scoring Module
==============

Pairing of repaired streams and VMAF scoring through ffmpeg.

Components:
    - VmafScorer: Directory-level run (repair, pair, score, report)
    - VmafRunner: One reference/degraded comparison
    - build_vmaf_command: ffmpeg argument list for a comparison
    - read_vmaf_log: Validated libvmaf log loading
"""

from ivf_scorer.scoring.orchestrator import REPORT_FILENAME, VmafScorer
from ivf_scorer.scoring.vmaf import (
    ComparisonPaths,
    VmafRunner,
    build_vmaf_command,
    pts_offset_seconds,
    read_vmaf_log,
    run_command,
)


__all__ = [
    "REPORT_FILENAME",
    "VmafScorer",
    "ComparisonPaths",
    "VmafRunner",
    "build_vmaf_command",
    "pts_offset_seconds",
    "read_vmaf_log",
    "run_command",
]
