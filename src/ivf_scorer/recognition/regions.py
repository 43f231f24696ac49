"""
Overlay Regions
===============

Rectangles of a captured frame that carry burned-in overlays.

The capture page draws two text overlays on every frame:
    - a millisecond wall clock in the top-left corner
    - the participant name label along the bottom edge

Both strips are one text line tall, sized from the frame height.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Region:
    """
    Axis-aligned crop rectangle in pixel coordinates.

    Attributes:
        left: X of the top-left corner
        top: Y of the top-left corner
        width: Rectangle width
        height: Rectangle height
    """

    left: int
    top: int
    width: int
    height: int

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.left < 0 or self.top < 0:
            raise ValueError("region origin must be non-negative")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("region size must be positive")

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


def text_line_height(frame_height: int) -> int:
    """Height of one overlay text line for a given frame height."""
    return math.ceil(frame_height / 18) + 6


def clock_region(frame_width: int, frame_height: int) -> Region:
    """Top strip, left half of the frame: the clock overlay."""
    return Region(
        left=0,
        top=0,
        width=max(1, frame_width // 2),
        height=min(frame_height, text_line_height(frame_height)),
    )


def name_region(frame_width: int, frame_height: int) -> Region:
    """Bottom strip, full frame width: the participant name label."""
    height = min(frame_height, text_line_height(frame_height))
    return Region(
        left=0,
        top=frame_height - height,
        width=frame_width,
        height=height,
    )
