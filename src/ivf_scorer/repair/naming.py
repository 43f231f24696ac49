"""
Stream Role Naming
==================

Filename conventions shared by the capture tool and the scorer.

Capture files start with a role token before the first underscore:
    <sender>-send_<...>.ivf    reference stream (what a participant sent)
    <receiver>-recv_<...>.ivf  degraded stream (what a receiver got)

Repaired files are named after the participant recognized in the frames:
    <participant>.ivf                      reference
    <participant>_recv-by_<receiver>.ivf   degraded

Every role decision goes through this module.
"""

from pathlib import Path
from typing import Optional, Tuple, Union

from ivf_scorer.models.repair import StreamRole


SEND_MARKER = "-send"
RECV_MARKER = "-recv"
RECV_BY_MARKER = "recv-by"

PathLike = Union[str, Path]


def leading_token(path: PathLike) -> str:
    """Part of the file name before the first underscore."""
    return Path(path).name.split("_")[0]


def classify(path: PathLike) -> Tuple[StreamRole, Optional[str]]:
    """
    Classify a capture file by its leading token.

    Returns:
        (StreamRole.REFERENCE, None) for sender captures, or
        (StreamRole.DEGRADED, receiver_token) otherwise
    """
    token = leading_token(path)
    if token.endswith(SEND_MARKER):
        return StreamRole.REFERENCE, None
    return StreamRole.DEGRADED, token.replace(RECV_MARKER, "", 1)


def output_name(source_path: PathLike, participant_display_name: str) -> str:
    """File name of the repaired stream for a capture file."""
    extension = Path(source_path).suffix or ".ivf"
    role, receiver = classify(source_path)
    if role is StreamRole.REFERENCE:
        return f"{participant_display_name}{extension}"
    return f"{participant_display_name}_{RECV_BY_MARKER}_{receiver}{extension}"


def is_degraded_output(path: PathLike) -> bool:
    """Whether a repaired file name denotes a degraded stream."""
    return RECV_BY_MARKER in Path(path).name
