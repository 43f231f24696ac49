"""
Repair Models
=============

Result of materializing a corrected IVF file.
"""

from dataclasses import dataclass
from enum import Enum


class StreamRole(str, Enum):
    """Role of a capture file in a quality comparison."""

    REFERENCE = "reference"
    DEGRADED = "degraded"


@dataclass(frozen=True, slots=True)
class RepairedStream:
    """
    A repaired IVF file on disk.

    Attributes:
        out_file_path: Path of the written file
        participant_display_name: Participant the stream belongs to
        start_pts: First (minimum) recovered pts
        frames_written: Frames in the output, duplicates included
        duplicated_frames: Frames copied to fill gaps
    """

    out_file_path: str
    participant_display_name: str
    start_pts: int
    frames_written: int
    duplicated_frames: int

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "out_file_path": self.out_file_path,
            "participant_display_name": self.participant_display_name,
            "start_pts": self.start_pts,
            "frames_written": self.frames_written,
            "duplicated_frames": self.duplicated_frames,
        }
