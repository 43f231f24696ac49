"""
Timestamp Recovery Engine
=========================

Recovers ground-truth frame timing from the clock overlay burned into
every captured frame, and the participant name from the name label.

This engine:
    - Recognizes the clock overlay of every catalogued frame, in chunks
      sized to the recognition pool
    - Converts each recognized millisecond clock to a pts at the stream
      frame rate
    - Recognizes the name label once, on the first frame whose clock
      was read successfully (retrying on later frames on failure)
    - Reconciles unrecognized frames by linear forward fill
    - Re-keys the catalogue by recovered pts (a new catalogue; the
      parsed one is left untouched)

Failure Policy:
    Recognition failures never abort a file. A low-confidence or failed
    recognition marks the frame UNRECOGNIZED and the reconciliation pass
    decides whether it survives. A failed name attempt never discards
    the clock result of the frame it ran on.
"""

import asyncio
import logging
import math
import re
from pathlib import Path
from typing import Dict, Optional, Union

from ivf_scorer.container.reader import read_payload
from ivf_scorer.errors import RecognitionError
from ivf_scorer.models.container import Catalogue, FrameRecord, StreamInfo
from ivf_scorer.models.recognition import UNRECOGNIZED, RecognitionResult
from ivf_scorer.recognition.engine import Recognizer
from ivf_scorer.recognition.regions import clock_region, name_region
from ivf_scorer.recovery.pool import chunked_gather


logger = logging.getLogger(__name__)


DEFAULT_CONFIDENCE_THRESHOLD = 75.0
CLOCK_CHARSET = "0123456789"
NAME_CHARSET = "Participant-0123456789s"

_LEADING_INT = re.compile(r"^\s*(\d+)")


def parse_clock(text: str) -> int:
    """
    Parse the leading integer of recognized clock text.

    Returns 0 when the text does not start with a digit.
    """
    match = _LEADING_INT.match(text or "")
    return int(match.group(1)) if match else 0


def clock_to_pts(clock_ms: int, frame_rate: float) -> int:
    """Convert a millisecond clock value to a pts, rounding half up."""
    return math.floor(frame_rate * clock_ms / 1000 + 0.5)


def reconcile(recognized: Dict[int, int]) -> Dict[int, int]:
    """
    Fill unrecognized frames by linear forward interpolation.

    Walks the original pts in ascending order. An UNRECOGNIZED entry
    (other than the first) takes `previous value + (pts - previous pts)`
    when its predecessor has a usable value; otherwise it is dropped.
    Recognized entries keep their own value.

    Args:
        recognized: Original pts -> recognized pts (or UNRECOGNIZED)

    Returns:
        New mapping; the input is not modified
    """
    resolved = dict(recognized)
    keys = sorted(resolved)

    for i, pts in enumerate(keys):
        if i == 0 or resolved.get(pts) != UNRECOGNIZED:
            continue
        previous = keys[i - 1]
        previous_value = resolved.get(previous, UNRECOGNIZED)
        if previous_value != UNRECOGNIZED:
            resolved[pts] = previous_value + pts - previous
        else:
            del resolved[pts]

    return resolved


def rekey(frames: Catalogue, resolved: Dict[int, int], path: str = "") -> Catalogue:
    """
    Build a catalogue keyed by recovered pts.

    Frames without a usable recovered value are discarded. When two frames
    recover to the same pts the first one in container order is kept.
    """
    recovered: Catalogue = {}
    for pts, record in sorted(frames.items(), key=lambda item: item[1].index):
        recognized_pts = resolved.get(pts, UNRECOGNIZED)
        if recognized_pts == UNRECOGNIZED:
            continue
        if recognized_pts in recovered:
            logger.warning(
                f"IVF file {path}: recovered pts {recognized_pts} already present "
                f"(frame {record.index}), skipping"
            )
            continue
        recovered[recognized_pts] = record
    return recovered


def _read_payload_at(path: Union[str, Path], record: FrameRecord) -> bytes:
    with open(path, "rb") as fh:
        return read_payload(fh, record)


class TimestampRecovery:
    """
    Recovers frame timing and participant identity for one IVF file.

    Attributes:
        recognizer: Recognition backend
        workers: Frames recognized concurrently per chunk
        confidence_threshold: Minimum accepted confidence (0-100)
        clock_charset: Characters allowed in the clock overlay
        name_charset: Characters allowed in the name label

    Example:
        recovery = TimestampRecovery(TesseractRecognizer(workers=8), workers=8)
        info = parse_ivf(path)
        recovered = await recovery.recover(path, info)
    """

    def __init__(
        self,
        recognizer: Recognizer,
        workers: int = 1,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        clock_charset: str = CLOCK_CHARSET,
        name_charset: str = NAME_CHARSET,
    ) -> None:
        self.recognizer = recognizer
        self.workers = max(1, workers)
        self.confidence_threshold = confidence_threshold
        self.clock_charset = clock_charset
        self.name_charset = name_charset

    async def recover(self, path: Union[str, Path], info: StreamInfo) -> StreamInfo:
        """
        Recover timing and identity for a parsed IVF file.

        Args:
            path: IVF file the catalogue was parsed from
            info: Parsed stream (container pts catalogue)

        Returns:
            New StreamInfo keyed by recovered pts, carrying the participant
            name when one was recognized
        """
        session = _RecoverySession(self, str(path), info)

        logger.info(f"Recovering {path}: {len(info.frames)} frames, {self.workers} workers")
        results = await chunked_gather(
            list(info.frames),
            session.recognize_frame,
            self.workers,
        )
        logger.info(f"Recovering {path}: recognizer done")

        recognized = {
            result.pts: result.recognized_pts
            for result in results
            if result is not None
        }
        resolved = reconcile(recognized)
        frames = rekey(info.frames, resolved, str(path))

        failed = sum(1 for value in recognized.values() if value == UNRECOGNIZED)
        logger.info(
            f"Recovered {path}: {len(frames)}/{len(info.frames)} frames, "
            f"{failed} unrecognized, participant={session.participant_display_name!r}"
        )

        return info.with_frames(
            frames,
            participant_display_name=session.participant_display_name,
        )


class _RecoverySession:
    """Per-file recognition state shared by the tasks of one recover() call."""

    def __init__(self, recovery: TimestampRecovery, path: str, info: StreamInfo) -> None:
        self.recovery = recovery
        self.path = path
        self.info = info
        self.clock_region = clock_region(info.width, info.height)
        self.name_region = name_region(info.width, info.height)
        self.participant_display_name: Optional[str] = None
        self._name_pending = False

    async def recognize_frame(self, pts: int, index: int) -> Optional[RecognitionResult]:
        recovery = self.recovery
        total = len(self.info.frames)

        record = self.info.frames.get(pts)
        if record is None:
            logger.warning(f"IVF file {self.path}: pts {pts} not found, skipping")
            return None

        payload = await asyncio.to_thread(_read_payload_at, self.path, record)

        try:
            result = await recovery.recognizer.recognize(
                payload, self.clock_region, recovery.clock_charset
            )
        except RecognitionError as e:
            logger.warning(f"recognize pts={index}/{total} failed: {e}")
            return RecognitionResult(pts=pts, recognized_pts=UNRECOGNIZED, confidence=0.0)

        clock_ms = parse_clock(result.text)
        if result.confidence < recovery.confidence_threshold or clock_ms <= 0:
            logger.warning(
                f"recognize pts={index}/{total} failed: text={result.text} "
                f"confidence={result.confidence:.1f} recognizedTime={clock_ms}"
            )
            return RecognitionResult(pts=pts, recognized_pts=UNRECOGNIZED, confidence=result.confidence)

        logger.debug(
            f"recognize pts={index}/{total} text={result.text} "
            f"confidence={result.confidence:.1f}"
        )
        recognized_pts = clock_to_pts(clock_ms, self.info.frame_rate)

        if self.participant_display_name is None and not self._name_pending:
            await self._recognize_name(payload)

        return RecognitionResult(pts=pts, recognized_pts=recognized_pts, confidence=result.confidence)

    async def _recognize_name(self, payload: bytes) -> None:
        recovery = self.recovery
        self._name_pending = True
        try:
            result = await recovery.recognizer.recognize(
                payload, self.name_region, recovery.name_charset
            )
        except Exception as e:
            logger.warning(f"participantDisplayName failed: {e!r}")
            return
        finally:
            self._name_pending = False

        if result.confidence > recovery.confidence_threshold and result.text:
            self.participant_display_name = result.text
            logger.debug(
                f'participantDisplayName="{result.text}" confidence={result.confidence:.1f}'
            )
        else:
            logger.warning(
                f'participantDisplayName failed text="{result.text}" '
                f"confidence={result.confidence:.1f}"
            )
