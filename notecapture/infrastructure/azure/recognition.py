"""Text recognition through the Azure Computer Vision Read API."""

from typing import Any, Dict, List, Optional, Tuple

import httpx

from ...modules.common.exceptions import (
    RecognitionFailedError,
    RecognitionTimeoutError,
    RecognitionUnavailableError,
)
from ..config.settings import Settings, get_settings
from ..logging import get_logger
from .client import AzureOperationClient, OperationLocationMissing, describe_http_error
from .polling import PollSucceeded, PollTimedOut
from .schemas import RecognitionResult

logger = get_logger(__name__)

READ_ANALYZE_PATH = "/vision/v3.2/read/analyze"

DEFAULT_CONFIDENCE = 85.0


def extract_text_and_confidence(payload: Dict[str, Any]) -> Tuple[str, float]:
    """Flatten a Read API result into text and a 0-100 confidence.

    Confidence is the mean of every word-level confidence across all lines
    and pages. When no word carries a confidence, ``DEFAULT_CONFIDENCE`` is
    returned instead.
    """
    analyze_result = payload.get("analyzeResult") or {}
    pages: List[Dict[str, Any]] = analyze_result.get("readResults") or []

    lines: List[str] = []
    confidences: List[float] = []

    for page in pages:
        for line in page.get("lines") or []:
            lines.append(line.get("text", ""))
            for word in line.get("words") or []:
                if word.get("confidence") is not None:
                    confidences.append(float(word["confidence"]))

    if confidences:
        confidence = sum(confidences) / len(confidences) * 100
    else:
        confidence = DEFAULT_CONFIDENCE

    return "\n".join(lines).strip(), round(confidence, 2)


class TextRecognitionClient(AzureOperationClient):
    """Extracts text from an image; a required pipeline step."""

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "TextRecognitionClient":
        settings = settings or get_settings()
        return cls(
            endpoint=settings.AZURE_VISION_ENDPOINT,
            key=settings.AZURE_VISION_KEY,
            max_attempts=settings.POLL_MAX_ATTEMPTS,
            interval=settings.POLL_INTERVAL_SECONDS,
            timeout=settings.AZURE_HTTP_TIMEOUT,
            **kwargs,
        )

    async def recognize(self, image_path: str) -> RecognitionResult:
        """Run OCR on a local image.

        Raises:
            RecognitionUnavailableError: If no endpoint or key is configured.
            RecognitionFailedError: If the image cannot be read or the service fails.
            RecognitionTimeoutError: If no result arrives within the poll budget.
        """
        if not self.is_configured:
            raise RecognitionUnavailableError(
                "Azure Vision API key or endpoint not configured. "
                "Please set AZURE_VISION_KEY and AZURE_VISION_ENDPOINT"
            )

        try:
            image_bytes = await self.read_image(image_path)
        except OSError as e:
            raise RecognitionFailedError(f"Could not read image {image_path}: {e}") from e

        try:
            async with self.http_client() as client:
                outcome = await self.submit_and_poll(client, f"{self.endpoint}{READ_ANALYZE_PATH}", image_bytes)
        except httpx.HTTPError as e:
            logger.error(f"Azure Vision request failed: {describe_http_error(e)}")
            raise RecognitionFailedError(f"OCR processing failed: {describe_http_error(e)}") from e
        except OperationLocationMissing as e:
            raise RecognitionFailedError(f"OCR processing failed: {e}") from e

        if isinstance(outcome, PollTimedOut):
            raise RecognitionTimeoutError(f"Azure OCR processing timed out after {outcome.attempts} attempts")
        if not isinstance(outcome, PollSucceeded):
            raise RecognitionFailedError(f"Azure OCR processing failed: {outcome.reason}")

        try:
            text, confidence = extract_text_and_confidence(outcome.data)
        except (AttributeError, TypeError, ValueError) as e:
            raise RecognitionFailedError(f"Malformed OCR result: {e}") from e

        logger.info(f"OCR completed with confidence: {confidence}%", extra={"image_path": image_path})
        return RecognitionResult(text=text, confidence=confidence)
