"""Clients for the Azure AI services used by the ingestion pipeline."""

from .layout import LayoutAnalysisClient
from .recognition import DEFAULT_CONFIDENCE, TextRecognitionClient
from .schemas import LayoutData, RecognitionResult

__all__ = [
    "DEFAULT_CONFIDENCE",
    "LayoutAnalysisClient",
    "LayoutData",
    "RecognitionResult",
    "TextRecognitionClient",
]
