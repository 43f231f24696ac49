"""
Error Taxonomy
==============

Exceptions raised by the repair and scoring pipeline.

Granularity:
    - MalformedContainer: fatal to a single parse
    - NoParticipantIdentified / NoFramesRecovered / GapTooLarge:
      fatal to one file's repair, caught by the orchestrator
    - RecognitionError: fatal to one recognition call, degraded to an
      unrecognized frame by the recovery engine
    - ScoringError: fatal to one reference/degraded pair

Duplicate timestamps and unresolved frame lookups are recoverable and
are only logged as warnings.
"""


class IvfScorerError(Exception):
    """Base class for all pipeline errors."""
    pass


class MalformedContainer(IvfScorerError):
    """Raised when an IVF header cannot be fully read."""
    pass


class NoParticipantIdentified(IvfScorerError):
    """Raised when no participant name label could be recognized."""
    pass


class NoFramesRecovered(IvfScorerError):
    """Raised when timestamp recovery left no usable frames."""
    pass


class GapTooLarge(IvfScorerError):
    """Raised when a gap exceeds the duplication safety bound."""

    def __init__(self, path: str, missing: int, limit: float) -> None:
        super().__init__(
            f"IVF file {path}: too many frames missing: {missing} (limit {limit:g})"
        )
        self.missing = missing
        self.limit = limit


class RecognitionError(IvfScorerError):
    """Raised when a recognizer backend fails on a frame."""
    pass


class ScoringError(IvfScorerError):
    """Raised when the VMAF subprocess or its log fails."""
    pass
