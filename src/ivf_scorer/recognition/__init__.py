"""
Recognition Module
==================

Reads the burned-in clock and name overlays of captured frames.

This module provides a black-box abstraction over OCR. The recovery
engine consumes ONLY RecognizedText values, never OCR internals.

Components:
    - Recognizer: Protocol for recognition backends
    - TesseractRecognizer: Local tesseract (default)
    - VisionRecognizer: Google Cloud Vision API
    - Region, clock_region, name_region: Overlay geometry
    - create_recognizer: Backend factory driven by settings
"""

import logging

from ivf_scorer.config import Settings
from ivf_scorer.recognition.engine import Recognizer, TesseractRecognizer
from ivf_scorer.recognition.regions import (
    Region,
    clock_region,
    name_region,
    text_line_height,
)

# google-cloud-vision is imported lazily by VisionRecognizer itself
from ivf_scorer.recognition.vision_engine import VisionRecognizer


logger = logging.getLogger(__name__)


def create_recognizer(settings: Settings) -> Recognizer:
    """
    Create recognizer based on config.

    Fails fast if the vision backend is requested but unavailable.
    """
    backend = settings.recognition.backend

    if backend == "tesseract":
        logger.info("Using TesseractRecognizer")
        return TesseractRecognizer(
            workers=settings.worker_count,
            tesseract_cmd=settings.recognition.tesseract_cmd,
        )

    elif backend == "vision":
        logger.info("Using VisionRecognizer")
        return VisionRecognizer(
            credentials_path=settings.recognition.vision.credentials_path,
        )

    else:
        raise ValueError(f"Unknown recognition backend: {backend}")


__all__ = [
    "Recognizer",
    "TesseractRecognizer",
    "VisionRecognizer",
    "Region",
    "clock_region",
    "name_region",
    "text_line_height",
    "create_recognizer",
]
