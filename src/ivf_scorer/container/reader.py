"""
IVF Container Reader
====================

Parses the IVF header and frame index into a pts catalogue.

IVF layout (all fields little-endian):
    File header (32 bytes):
        0   4s  signature ("DKIF")
        4   u16 version
        6   u16 header size
        8   4s  fourcc
        12  u16 width
        14  u16 height
        16  u32 rate_den   (frame_rate = rate_den / rate_num)
        20  u32 rate_num
        24  u32 frame count
        28  u32 unused

    Frame record:
        0   u32 payload size
        4   u64 presentation timestamp (pts)
        12  payload (opaque, `size` bytes)

Design Rules:
    - Frame payloads are never interpreted
    - A duplicate pts keeps the first frame and logs a warning
    - A short trailing frame header or payload ends the stream (not an error)
    - Zero width or height is malformed
"""

import io
import logging
import struct
from pathlib import Path
from typing import BinaryIO, Iterator, Tuple, Union

from ivf_scorer.errors import MalformedContainer
from ivf_scorer.models.container import Catalogue, FrameRecord, StreamInfo


logger = logging.getLogger(__name__)


IVF_HEADER_SIZE = 32
FRAME_HEADER_SIZE = 12

WIDTH_OFFSET = 12
HEIGHT_OFFSET = 14
RATE_DEN_OFFSET = 16
RATE_NUM_OFFSET = 20
FRAME_COUNT_OFFSET = 24
FRAME_PTS_OFFSET = 4

_FRAME_HEADER = struct.Struct("<IQ")

PathLike = Union[str, Path]


def read_header(fh: BinaryIO) -> bytearray:
    """
    Read the 32-byte file header from the start of an open file.

    Raises:
        MalformedContainer: If fewer than 32 bytes could be read
    """
    fh.seek(0)
    header = fh.read(IVF_HEADER_SIZE)
    if len(header) != IVF_HEADER_SIZE:
        raise MalformedContainer(
            f"Invalid IVF file {getattr(fh, 'name', '?')}: "
            f"header is {len(header)} bytes, expected {IVF_HEADER_SIZE}"
        )
    return bytearray(header)


def decode_header(header: bytes) -> Tuple[int, int, float]:
    """
    Extract geometry and frame rate from a file header.

    Returns:
        Tuple of (width, height, frame_rate)

    Raises:
        MalformedContainer: If the frame size or rate field is zero
    """
    width, height = struct.unpack_from("<HH", header, WIDTH_OFFSET)
    if width == 0 or height == 0:
        raise MalformedContainer(f"Invalid IVF header: frame size {width}x{height}")
    rate_den, rate_num = struct.unpack_from("<II", header, RATE_DEN_OFFSET)
    if rate_num == 0:
        raise MalformedContainer(f"Invalid IVF header: zero rate field (den={rate_den})")
    return width, height, rate_den / rate_num


def header_frame_count(header: bytes) -> int:
    """Frame count stored in the file header."""
    return struct.unpack_from("<I", header, FRAME_COUNT_OFFSET)[0]


def set_frame_count(header: bytearray, count: int) -> None:
    """Overwrite the frame count field of a file header in place."""
    struct.pack_into("<I", header, FRAME_COUNT_OFFSET, count)


def patch_pts(frame: bytearray, pts: int) -> None:
    """Overwrite the pts field of a frame buffer (header + payload) in place."""
    struct.pack_into("<Q", frame, FRAME_PTS_OFFSET, pts)


def iter_frame_headers(fh: BinaryIO) -> Iterator[Tuple[int, int, int]]:
    """
    Walk the frame records of an open IVF file.

    Stops at the first record whose header or payload runs past the end
    of the file.

    Yields:
        Tuples of (position, payload_size, pts)
    """
    end = fh.seek(0, io.SEEK_END)
    position = IVF_HEADER_SIZE
    while True:
        fh.seek(position)
        raw = fh.read(FRAME_HEADER_SIZE)
        if len(raw) != FRAME_HEADER_SIZE:
            break
        size, pts = _FRAME_HEADER.unpack(raw)
        if position + FRAME_HEADER_SIZE + size > end:
            logger.warning(
                f"Truncated frame at offset {position}: "
                f"payload of {size} bytes runs past end of file ({end} bytes), stopping"
            )
            break
        yield position, size, pts
        position += size + FRAME_HEADER_SIZE


def read_frame(fh: BinaryIO, record: FrameRecord) -> bytearray:
    """
    Read a whole frame record (header + payload) into a fresh buffer.

    Each call returns a new bytearray; callers own and may patch it.
    """
    fh.seek(record.position)
    data = fh.read(record.size)
    if len(data) != record.size:
        raise MalformedContainer(
            f"Truncated frame at offset {record.position}: "
            f"read {len(data)} of {record.size} bytes"
        )
    return bytearray(data)


def read_payload(fh: BinaryIO, record: FrameRecord) -> bytes:
    """Read only the opaque payload of a frame."""
    fh.seek(record.payload_position)
    return fh.read(record.payload_size)


def parse_ivf(path: PathLike) -> StreamInfo:
    """
    Parse an IVF file into a StreamInfo.

    Args:
        path: Path to the IVF file

    Returns:
        StreamInfo with geometry, frame rate and pts catalogue

    Raises:
        MalformedContainer: If the file header cannot be fully read or
            declares a zero frame size or rate
    """
    logger.debug(f"parse_ivf {path}")

    with open(path, "rb") as fh:
        header = read_header(fh)
        width, height, frame_rate = decode_header(header)

        frames: Catalogue = {}
        index = 0
        for position, size, pts in iter_frame_headers(fh):
            if pts in frames:
                logger.warning(f"IVF file {path}: pts {pts} already present, skipping")
                continue
            frames[pts] = FrameRecord(
                index=index,
                position=position,
                size=size + FRAME_HEADER_SIZE,
            )
            index += 1

    logger.debug(
        f"parse_ivf {path}: {width}x{height} @ {frame_rate:g}fps, {len(frames)} frames"
    )
    return StreamInfo(width=width, height=height, frame_rate=frame_rate, frames=frames)
