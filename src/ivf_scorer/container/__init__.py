"""
Container Module
================

Binary IVF container access.

Components:
    - parse_ivf: Index a file into a pts -> FrameRecord catalogue
    - read_header / read_frame / read_payload: Raw access by record
    - patch_pts / set_frame_count: In-place field patching for the writer
"""

from ivf_scorer.container.reader import (
    FRAME_HEADER_SIZE,
    IVF_HEADER_SIZE,
    decode_header,
    header_frame_count,
    iter_frame_headers,
    parse_ivf,
    patch_pts,
    read_frame,
    read_header,
    read_payload,
    set_frame_count,
)


__all__ = [
    "FRAME_HEADER_SIZE",
    "IVF_HEADER_SIZE",
    "decode_header",
    "header_frame_count",
    "iter_frame_headers",
    "parse_ivf",
    "patch_pts",
    "read_frame",
    "read_header",
    "read_payload",
    "set_frame_count",
]
