"""
Repair Module
=============

Gap-filling rewrite of capture files on their recovered timeline.

Components:
    - repair_ivf: Parse, recover and write one capture file
    - write_repaired: Write a file from an already-recovered catalogue
    - classify / output_name / is_degraded_output: Role naming rules
"""

from ivf_scorer.repair.naming import (
    classify,
    is_degraded_output,
    leading_token,
    output_name,
)
from ivf_scorer.repair.writer import repair_ivf, write_repaired


__all__ = [
    "classify",
    "is_degraded_output",
    "leading_token",
    "output_name",
    "repair_ivf",
    "write_repaired",
]
