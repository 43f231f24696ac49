"""
Recognition Tests
=================

Overlay geometry, image helpers and backend selection.
"""

import cv2
import numpy as np
import pytest

from ivf_scorer.config import Settings
from ivf_scorer.errors import RecognitionError
from ivf_scorer.recognition import Region, clock_region, create_recognizer, name_region
from ivf_scorer.recognition.image import crop, decode_image, encode_png


class TestRegions:
    """Tests for overlay regions."""

    def test_clock_region(self):
        assert clock_region(640, 480) == Region(left=0, top=0, width=320, height=33)

    def test_name_region(self):
        assert name_region(640, 480) == Region(left=0, top=447, width=640, height=33)

    def test_small_frame_clamped(self):
        region = name_region(16, 10)

        assert region.top == 0
        assert region.height == 10

    def test_invalid_region(self):
        with pytest.raises(ValueError):
            Region(left=0, top=0, width=0, height=10)


class TestImage:
    """Tests for image decoding helpers."""

    def test_decode_and_crop(self):
        image = np.zeros((48, 64), dtype=np.uint8)
        image[:10, :32] = 255

        gray = decode_image(encode_png(image))
        clipped = crop(gray, clock_region(64, 48))

        assert gray.shape == (48, 64)
        assert clipped.shape == (9, 32)
        assert clipped.min() == 255

    def test_decode_garbage(self):
        with pytest.raises(RecognitionError):
            decode_image(b"not an image")

    def test_decode_empty(self):
        with pytest.raises(RecognitionError):
            decode_image(b"")

    def test_crop_outside(self):
        gray = np.zeros((10, 10), dtype=np.uint8)

        with pytest.raises(RecognitionError):
            crop(gray, Region(left=20, top=0, width=5, height=5))

    def test_crop_clamped(self):
        gray = np.zeros((10, 10), dtype=np.uint8)

        assert crop(gray, Region(left=5, top=5, width=20, height=20)).shape == (5, 5)

    def test_png_roundtrip_is_png(self):
        ok, _ = cv2.imencode(".png", np.zeros((4, 4), dtype=np.uint8))

        assert ok
        assert encode_png(np.zeros((4, 4), dtype=np.uint8)).startswith(b"\x89PNG")


class TestCreateRecognizer:
    """Tests for create_recognizer."""

    def test_unknown_backend(self):
        settings = Settings.model_validate({"recognition": {"backend": "bogus"}})

        with pytest.raises(ValueError):
            create_recognizer(settings)
