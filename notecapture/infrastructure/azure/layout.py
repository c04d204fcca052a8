"""Layout analysis through the Azure Document Intelligence prebuilt-layout model.

Layout data only enriches the cleanup prompt, so every failure here is
reported through an ``AdvisoryResult`` rather than raised.
"""

from typing import Any, Dict, Optional

import httpx

from ...modules.common.results import AdvisoryResult
from ..config.settings import Settings, get_settings
from ..logging import get_logger
from .client import AzureOperationClient, OperationLocationMissing, describe_http_error
from .polling import PollFailed, PollTimedOut
from .schemas import LayoutData, LayoutParagraph, LayoutTable

logger = get_logger(__name__)

LAYOUT_ANALYZE_PATH = "/formrecognizer/documentModels/prebuilt-layout:analyze"


def parse_layout(payload: Dict[str, Any]) -> LayoutData:
    analyze_result = payload.get("analyzeResult") or {}
    return LayoutData(
        page_count=len(analyze_result.get("pages") or []),
        paragraphs=[
            LayoutParagraph(role=paragraph.get("role"), content=paragraph.get("content", ""))
            for paragraph in analyze_result.get("paragraphs") or []
        ],
        tables=[
            LayoutTable(row_count=table.get("rowCount", 0), column_count=table.get("columnCount", 0))
            for table in analyze_result.get("tables") or []
        ],
    )


class LayoutAnalysisClient(AzureOperationClient):
    """Optional structure analysis of an image."""

    def __init__(self, *args: Any, api_version: str = "2023-07-31", enabled: bool = True, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.api_version = api_version
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "LayoutAnalysisClient":
        settings = settings or get_settings()
        return cls(
            endpoint=settings.LAYOUT_ENDPOINT,
            key=settings.LAYOUT_KEY,
            max_attempts=settings.POLL_MAX_ATTEMPTS,
            interval=settings.POLL_INTERVAL_SECONDS,
            timeout=settings.AZURE_HTTP_TIMEOUT,
            api_version=settings.AZURE_DOCUMENT_INTELLIGENCE_API_VERSION,
            enabled=settings.LAYOUT_ANALYSIS_ENABLED,
            **kwargs,
        )

    @property
    def analyze_url(self) -> str:
        return f"{self.endpoint}{LAYOUT_ANALYZE_PATH}?api-version={self.api_version}"

    async def analyze(self, image_path: str) -> AdvisoryResult[Optional[LayoutData]]:
        """Analyze an image's layout; never raises."""
        if not self.enabled or not self.is_configured:
            return AdvisoryResult.fallback(None, "Layout analysis not configured")

        try:
            image_bytes = await self.read_image(image_path)
            async with self.http_client() as client:
                outcome = await self.submit_and_poll(client, self.analyze_url, image_bytes)
        except httpx.HTTPError as e:
            reason = describe_http_error(e)
            logger.warning(f"Layout analysis request failed: {reason}")
            return AdvisoryResult.fallback(None, reason)
        except (OSError, OperationLocationMissing) as e:
            logger.warning(f"Layout analysis skipped: {e}")
            return AdvisoryResult.fallback(None, str(e))

        if isinstance(outcome, PollFailed):
            logger.warning(f"Layout analysis failed: {outcome.reason}")
            return AdvisoryResult.fallback(None, outcome.reason)
        if isinstance(outcome, PollTimedOut):
            logger.warning(f"Layout analysis timed out after {outcome.attempts} attempts")
            return AdvisoryResult.fallback(None, f"timed out after {outcome.attempts} attempts")

        try:
            layout = parse_layout(outcome.data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Malformed layout result: {e}")
            return AdvisoryResult.fallback(None, f"malformed layout result: {e}")

        return AdvisoryResult.success(layout)
