"""
Recognition Engine
==================

Clean recognition abstraction over an external OCR capability.

This module provides the Recognizer protocol consumed by the timestamp
recovery engine, plus the tesseract-backed default implementation.

Design Rules:
    - Takes encoded frame bytes + a crop region + an allowed charset
    - Returns RecognizedText with confidence in [0, 100]
    - Must tolerate concurrent calls up to the recovery pool size
    - Raises RecognitionError on backend failure; never retries
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Protocol

import pytesseract

from ivf_scorer.errors import RecognitionError
from ivf_scorer.models.recognition import RecognizedText
from ivf_scorer.recognition.image import crop, decode_image
from ivf_scorer.recognition.regions import Region


logger = logging.getLogger(__name__)


class Recognizer(Protocol):
    """
    Protocol for recognition backends.

    This interface is implemented by:
        - TesseractRecognizer (default, local)
        - VisionRecognizer (Google Cloud Vision)
    """

    async def recognize(
        self,
        image: bytes,
        region: Region,
        charset: str,
    ) -> RecognizedText:
        """
        Recognize one line of text inside a region of an image.

        Args:
            image: Encoded frame image bytes
            region: Crop rectangle
            charset: Characters the result may contain

        Returns:
            RecognizedText with stripped text and confidence 0-100
        """
        ...

    def close(self) -> None:
        """Release backend resources."""
        ...


class TesseractRecognizer:
    """
    Recognizer backed by the local tesseract binary via pytesseract.

    Tesseract calls block, so they run on a bounded thread pool sized
    to the recovery pool. Page segmentation is single-line (psm 7) and
    the charset is passed as a tesseract whitelist.

    Attributes:
        workers: Maximum concurrent tesseract processes
    """

    def __init__(
        self,
        workers: int = 1,
        tesseract_cmd: Optional[str] = None,
    ) -> None:
        """
        Initialize tesseract recognizer.

        Args:
            workers: Thread pool size
            tesseract_cmd: Explicit path to the tesseract binary
        """
        self.workers = max(1, workers)
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self._executor = ThreadPoolExecutor(
            max_workers=self.workers,
            thread_name_prefix="tesseract",
        )
        logger.info(f"TesseractRecognizer initialized: workers={self.workers}")

    async def recognize(
        self,
        image: bytes,
        region: Region,
        charset: str,
    ) -> RecognizedText:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, self._recognize_sync, image, region, charset
        )

    def _recognize_sync(self, image: bytes, region: Region, charset: str) -> RecognizedText:
        gray = crop(decode_image(image), region)
        config = f"--psm 7 -c tessedit_char_whitelist={charset}"
        try:
            data = pytesseract.image_to_data(
                gray, config=config, output_type=pytesseract.Output.DICT
            )
        except pytesseract.TesseractError as e:
            raise RecognitionError(f"tesseract failed: {e}")

        # Combine words and average their confidences
        words = []
        confidences = []
        for text, conf in zip(data["text"], data["conf"]):
            text = text.strip()
            conf = float(conf)
            if text and conf >= 0:
                words.append(text)
                confidences.append(conf)

        avg_conf = sum(confidences) / len(confidences) if confidences else 0.0
        return RecognizedText(text=" ".join(words), confidence=avg_conf)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
