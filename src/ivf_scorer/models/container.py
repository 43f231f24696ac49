"""
Container Models
================

Data models for an indexed IVF capture file.

These models are produced by the container reader and re-keyed by the
timestamp recovery engine. A StreamInfo is never mutated: recovery
returns a new value with a new frame catalogue.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional


@dataclass(frozen=True, slots=True)
class FrameRecord:
    """
    One physical frame in an IVF file.

    Attributes:
        index: Running sequence index in container order
        position: Byte offset of the 12-byte frame header
        size: Frame length in bytes, including the frame header
    """

    index: int
    position: int
    size: int

    @property
    def payload_position(self) -> int:
        """Byte offset of the frame payload."""
        return self.position + 12

    @property
    def payload_size(self) -> int:
        return self.size - 12


# pts -> FrameRecord
Catalogue = Dict[int, FrameRecord]


@dataclass(frozen=True)
class StreamInfo:
    """
    Parsed IVF stream.

    Attributes:
        width: Frame width in pixels
        height: Frame height in pixels
        frame_rate: Frames per second (rate_den / rate_num)
        frames: Catalogue mapping pts to FrameRecord
        participant_display_name: Recovered name label, if any
    """

    width: int
    height: int
    frame_rate: float
    frames: Catalogue = field(default_factory=dict)
    participant_display_name: Optional[str] = None

    @property
    def pts_index(self) -> List[int]:
        """Catalogue keys in ascending order."""
        return sorted(self.frames)

    @property
    def start_pts(self) -> Optional[int]:
        return min(self.frames) if self.frames else None

    def with_frames(
        self,
        frames: Catalogue,
        participant_display_name: Optional[str] = None,
    ) -> "StreamInfo":
        """Return a copy carrying a new catalogue (and optionally a name)."""
        return replace(
            self,
            frames=dict(frames),
            participant_display_name=(
                participant_display_name
                if participant_display_name is not None
                else self.participant_display_name
            ),
        )

    def __repr__(self) -> str:
        return (
            f"StreamInfo({self.width}x{self.height}@{self.frame_rate:g}, "
            f"frames={len(self.frames)}, "
            f"participant={self.participant_display_name!r})"
        )
