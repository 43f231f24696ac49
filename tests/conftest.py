"""
Test Configuration
==================

Pytest fixtures and test configuration for ivf-scorer.

Fixtures build small IVF files on disk whose frame payloads are plain
text records understood by FakeRecognizer, e.g.:

    b"clock=1000;conf=90;name=Alice;name_conf=95"
"""

import struct
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from ivf_scorer.errors import RecognitionError
from ivf_scorer.models.recognition import RecognizedText
from ivf_scorer.recognition.regions import Region
from ivf_scorer.recovery.recovery import CLOCK_CHARSET


def build_header(
    width: int = 640,
    height: int = 480,
    rate_den: int = 30,
    rate_num: int = 1,
    frame_count: int = 0,
) -> bytes:
    """32-byte IVF file header."""
    return struct.pack(
        "<4sHH4sHHIII4x",
        b"DKIF", 0, 32, b"VP80", width, height, rate_den, rate_num, frame_count,
    )


def build_frame(pts: int, payload: bytes) -> bytes:
    """12-byte frame header followed by the payload."""
    return struct.pack("<IQ", len(payload), pts) + payload


def write_ivf(
    path: Path,
    frames: Iterable[Tuple[int, bytes]],
    **header,
) -> Path:
    frames = list(frames)
    header.setdefault("frame_count", len(frames))
    with open(path, "wb") as fh:
        fh.write(build_header(**header))
        for pts, payload in frames:
            fh.write(build_frame(pts, payload))
    return path


def read_frames(path: Path) -> List[Tuple[int, bytes]]:
    """All (pts, whole frame bytes) records of an IVF file, in file order."""
    data = Path(path).read_bytes()
    position = 32
    frames = []
    while position + 12 <= len(data):
        size, pts = struct.unpack_from("<IQ", data, position)
        frames.append((pts, data[position:position + 12 + size]))
        position += 12 + size
    return frames


def overlay_payload(
    clock: Optional[int] = None,
    conf: float = 95.0,
    name: Optional[str] = None,
    name_conf: float = 95.0,
) -> bytes:
    """Payload text read back by FakeRecognizer."""
    fields = [f"conf={conf}", f"name_conf={name_conf}"]
    if clock is not None:
        fields.append(f"clock={clock}")
    if name is not None:
        fields.append(f"name={name}")
    return ";".join(fields).encode()


class FakeRecognizer:
    """
    Recognizer reading overlay values out of text payloads.

    Clock requests (digit charset) return the `clock` field, everything
    else returns the `name` field. A payload of b"error" raises
    RecognitionError, b"crash" raises RuntimeError, and a `name=crash`
    field makes only the name request raise RuntimeError.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[Region, str]] = []
        self.closed = False

    async def recognize(self, image: bytes, region: Region, charset: str) -> RecognizedText:
        self.calls.append((region, charset))
        if image == b"error":
            raise RecognitionError("backend failure")
        if image == b"crash":
            raise RuntimeError("backend crashed")

        fields: Dict[str, str] = dict(
            item.split("=", 1) for item in image.decode().split(";") if "=" in item
        )
        if charset == CLOCK_CHARSET:
            return RecognizedText(
                text=fields.get("clock", ""),
                confidence=float(fields.get("conf", 0)),
            )
        if fields.get("name") == "crash":
            raise RuntimeError("name backend crashed")
        return RecognizedText(
            text=fields.get("name", ""),
            confidence=float(fields.get("name_conf", 0)),
        )

    def close(self) -> None:
        self.closed = True

    @property
    def name_calls(self) -> int:
        return sum(1 for _, charset in self.calls if charset != CLOCK_CHARSET)


@pytest.fixture
def fake_recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def ivf_factory(tmp_path):
    """Write an IVF file under tmp_path: ivf_factory(name, frames, **header)."""

    def factory(name: str, frames: Sequence[Tuple[int, bytes]], **header) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        return write_ivf(path, frames, **header)

    return factory


@pytest.fixture
def sample_vmaf_log() -> dict:
    """Minimal libvmaf JSON log."""
    return {
        "version": "2.3.1",
        "fps": 30.0,
        "frames": [
            {"frameNum": i, "metrics": {"vmaf": 90.0 + (i % 3)}}
            for i in range(6)
        ],
        "pooled_metrics": {
            "vmaf": {"min": 90.0, "max": 92.0, "mean": 91.0, "harmonic_mean": 90.99},
        },
    }
