"""
Recognition Models
==================

Transient values passed between the recognizer backends and the
timestamp recovery engine. Discarded after reconciliation.
"""

from dataclasses import dataclass


# Recognized pts value marking a frame whose clock could not be read
UNRECOGNIZED = 0


@dataclass(frozen=True, slots=True)
class RecognizedText:
    """
    Raw output of a recognizer backend.

    Attributes:
        text: Recognized text, stripped
        confidence: Backend confidence in [0, 100]
    """

    text: str
    confidence: float


@dataclass(frozen=True, slots=True)
class RecognitionResult:
    """
    Clock recognition outcome for one frame.

    Attributes:
        pts: Original container pts of the frame
        recognized_pts: Recovered pts, or UNRECOGNIZED
        confidence: Confidence of the clock recognition
    """

    pts: int
    recognized_pts: int
    confidence: float

    @property
    def is_recognized(self) -> bool:
        return self.recognized_pts != UNRECOGNIZED
