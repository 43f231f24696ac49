"""
Image Decoding
==============

Dedicated module for turning frame payload bytes into OpenCV matrices
for the recognizer backends.

Design Rules:
    - This is the ONLY place in the codebase that decodes images
    - The container reader and repair writer never call it
    - Fails fast on payloads OpenCV cannot decode
"""

import logging

import cv2
import numpy as np

from ivf_scorer.errors import RecognitionError
from ivf_scorer.recognition.regions import Region


logger = logging.getLogger(__name__)


def decode_image(image: bytes) -> np.ndarray:
    """
    Decode an encoded image buffer to a grayscale numpy array.

    Args:
        image: Encoded image bytes

    Returns:
        Grayscale image as np.ndarray (H, W), dtype=uint8

    Raises:
        RecognitionError: If decoding fails
    """
    if not image:
        raise RecognitionError("Empty image buffer")

    nparr = np.frombuffer(image, np.uint8)
    gray = cv2.imdecode(nparr, cv2.IMREAD_GRAYSCALE)
    if gray is None:
        raise RecognitionError(
            f"Failed to decode image ({len(image)} bytes): cv2.imdecode returned None"
        )
    return gray


def crop(gray: np.ndarray, region: Region) -> np.ndarray:
    """
    Crop a region, clamped to the image bounds.

    Raises:
        RecognitionError: If the region lies entirely outside the image
    """
    height, width = gray.shape[:2]
    top, bottom = min(region.top, height), min(region.bottom, height)
    left, right = min(region.left, width), min(region.right, width)
    if bottom <= top or right <= left:
        raise RecognitionError(f"Region {region} outside image {width}x{height}")
    return gray[top:bottom, left:right]


def encode_png(gray: np.ndarray) -> bytes:
    """Re-encode a (cropped) image as PNG for remote backends."""
    ok, buffer = cv2.imencode(".png", gray)
    if not ok:
        raise RecognitionError("cv2.imencode failed")
    return buffer.tobytes()
