"""
Vision Recognition Engine
=========================

Recognizer backed by Google Cloud Vision text detection.

This engine:
    - Crops the overlay region locally and uploads only the crop
    - Uses document_text_detection for block-level confidences
    - Filters the result to the allowed charset
    - Raises RecognitionError on API errors (no retries)

Design Rules:
    - Fail fast on misconfiguration
    - Log all API failures
"""

import asyncio
import logging
from typing import Optional

from ivf_scorer.errors import RecognitionError
from ivf_scorer.models.recognition import RecognizedText
from ivf_scorer.recognition.image import crop, decode_image, encode_png
from ivf_scorer.recognition.regions import Region


logger = logging.getLogger(__name__)


class VisionRecognizer:
    """
    Recognizer using the Google Cloud Vision API.

    The Vision client is synchronous; calls are moved to worker threads
    so recovery chunks still run concurrently.

    Attributes:
        credentials_path: Path to service account JSON
    """

    def __init__(self, credentials_path: Optional[str] = None) -> None:
        """
        Initialize Vision recognizer.

        Args:
            credentials_path: Path to service account JSON (optional)

        Raises:
            ImportError: If google-cloud-vision is not installed
            RecognitionError: If the client cannot be created
        """
        self.credentials_path = credentials_path
        self._api_call_count: int = 0
        self._api_error_count: int = 0
        self._client = None
        self._init_client(credentials_path)

    def _init_client(self, credentials_path: Optional[str]) -> None:
        """Initialize Google Cloud Vision client."""
        try:
            from google.cloud import vision

            if credentials_path:
                self._client = vision.ImageAnnotatorClient.from_service_account_json(
                    credentials_path
                )
                logger.info(f"Vision client initialized from: {credentials_path}")
            else:
                # Use default credentials (ADC)
                self._client = vision.ImageAnnotatorClient()
                logger.info("Vision client initialized with default credentials")

        except ImportError:
            raise ImportError(
                "google-cloud-vision is required for VisionRecognizer. "
                "Install with: pip install 'ivf-scorer[vision]'"
            )
        except Exception as e:
            raise RecognitionError(f"Failed to initialize Vision client: {e}")

    async def recognize(
        self,
        image: bytes,
        region: Region,
        charset: str,
    ) -> RecognizedText:
        content = encode_png(crop(decode_image(image), region))
        return await asyncio.to_thread(self._detect_text, content, charset)

    def _detect_text(self, content: bytes, charset: str) -> RecognizedText:
        from google.cloud import vision

        self._api_call_count += 1
        response = self._client.document_text_detection(
            image=vision.Image(content=content)
        )
        if response.error.message:
            self._api_error_count += 1
            logger.error(
                f"Vision API error: {response.error.message}. "
                f"Total errors: {self._api_error_count}"
            )
            raise RecognitionError(f"Vision API error: {response.error.message}")

        annotation = response.full_text_annotation
        allowed = set(charset)
        text = "".join(c for c in annotation.text if c in allowed)

        confidences = [
            block.confidence
            for page in annotation.pages
            for block in page.blocks
        ]
        confidence = 100.0 * sum(confidences) / len(confidences) if confidences else 0.0

        return RecognizedText(text=text.strip(), confidence=confidence)

    def close(self) -> None:
        logger.debug(
            f"VisionRecognizer closed: calls={self._api_call_count}, "
            f"errors={self._api_error_count}"
        )
