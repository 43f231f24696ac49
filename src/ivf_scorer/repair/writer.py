"""
Frame Repair Writer
===================

Materializes a corrected IVF file from a recovered catalogue.

The writer:
    - Copies the source file header, reserving the frame count field
    - Walks recovered pts in ascending order
    - Fills every gap with copies of the previous frame, each with its
      pts field patched to the next missing value
    - Patches the pts field of every source frame to its recovered pts
    - Rewrites the header with the number of frames actually written

Output Guarantees:
    - Embedded pts are contiguous (each is its predecessor + 1)
    - Duplicates are byte-identical to their source frame except the pts
    - Header frame count equals the number of frame records

Gap Bound:
    A single gap larger than `max_gap_seconds` worth of frames raises
    GapTooLarge; the partial output is removed.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from ivf_scorer.container.reader import (
    parse_ivf,
    patch_pts,
    read_frame,
    read_header,
    set_frame_count,
)
from ivf_scorer.errors import GapTooLarge, NoFramesRecovered, NoParticipantIdentified
from ivf_scorer.models.container import StreamInfo
from ivf_scorer.models.repair import RepairedStream
from ivf_scorer.recovery.recovery import TimestampRecovery
from ivf_scorer.repair.naming import output_name


logger = logging.getLogger(__name__)


DEFAULT_MAX_GAP_SECONDS = 3600.0

PathLike = Union[str, Path]


def write_repaired(
    source_path: PathLike,
    info: StreamInfo,
    out_path: PathLike,
    max_gap_seconds: float = DEFAULT_MAX_GAP_SECONDS,
) -> Tuple[int, int]:
    """
    Write a gap-free copy of `source_path` following `info.frames`.

    Args:
        source_path: IVF file the catalogue points into
        info: Stream whose catalogue is keyed by the pts to write
        out_path: Destination file (overwritten)
        max_gap_seconds: Largest fillable gap, in seconds of frames

    Returns:
        Tuple of (frames_written, duplicated_frames)

    Raises:
        NoFramesRecovered: If the catalogue is empty
        GapTooLarge: If a gap exceeds the bound
    """
    if not info.frames:
        raise NoFramesRecovered(f"IVF file {source_path}: no frames found")

    max_missing = info.frame_rate * max_gap_seconds
    written = 0
    duplicated = 0

    with open(source_path, "rb") as src, open(out_path, "wb") as dst:
        header = read_header(src)
        dst.write(header)

        previous_pts: Optional[int] = None
        previous_frame: Optional[bytearray] = None

        for pts in info.pts_index:
            record = info.frames[pts]

            if previous_frame is not None and previous_pts is not None:
                missing = pts - previous_pts - 1
                if missing > max_missing:
                    raise GapTooLarge(str(source_path), missing, max_missing)
                while previous_pts + 1 < pts:
                    previous_pts += 1
                    patch_pts(previous_frame, previous_pts)
                    dst.write(previous_frame)
                    written += 1
                    duplicated += 1

            frame = read_frame(src, record)
            patch_pts(frame, pts)
            dst.write(frame)
            written += 1

            previous_pts = pts
            previous_frame = frame

        set_frame_count(header, written)
        dst.seek(0)
        dst.write(header)

    return written, duplicated


async def repair_ivf(
    path: PathLike,
    out_dir: PathLike,
    recovery: TimestampRecovery,
    max_gap_seconds: float = DEFAULT_MAX_GAP_SECONDS,
) -> RepairedStream:
    """
    Recover and repair one capture file.

    Args:
        path: Capture IVF file
        out_dir: Directory receiving the repaired file
        recovery: Timestamp recovery engine
        max_gap_seconds: Largest fillable gap, in seconds of frames

    Returns:
        RepairedStream describing the written file

    Raises:
        NoParticipantIdentified: If no name label was recognized
        NoFramesRecovered: If no frame survived recovery
        GapTooLarge: If a gap exceeds the bound
    """
    info = await asyncio.to_thread(parse_ivf, path)
    recovered = await recovery.recover(path, info)

    participant = recovered.participant_display_name
    if not participant:
        raise NoParticipantIdentified(f"IVF file {path}: no participant name found")
    if not recovered.frames:
        raise NoFramesRecovered(f"IVF file {path}: no frames found")

    logger.debug(
        f"repair_ivf {path}: {recovered.width}x{recovered.height} "
        f"@ {recovered.frame_rate:g}fps"
    )

    out_file_path = Path(out_dir) / output_name(path, participant)
    try:
        written, duplicated = await asyncio.to_thread(
            write_repaired, path, recovered, out_file_path, max_gap_seconds
        )
    except Exception:
        out_file_path.unlink(missing_ok=True)
        raise

    logger.info(
        f"IVF file {path}: frames written: {written} duplicated: {duplicated}"
    )

    return RepairedStream(
        out_file_path=str(out_file_path),
        participant_display_name=participant,
        start_pts=recovered.start_pts,
        frames_written=written,
        duplicated_frames=duplicated,
    )
