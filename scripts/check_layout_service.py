"""Check that the configured credentials can reach the layout analysis service.

Submits a 1x1 PNG to the prebuilt-layout model and explains the outcome.
The Document Intelligence key and endpoint are used when set, otherwise
the Computer Vision ones.
"""

import asyncio
import base64
import sys
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).parent.parent))

from notecapture.infrastructure.azure import LayoutAnalysisClient  # noqa: E402
from notecapture.infrastructure.config import get_settings  # noqa: E402
from notecapture.infrastructure.logging import get_logger  # noqa: E402

logger = get_logger(__name__)

TEST_IMAGE = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)

UNAUTHORIZED_HELP = """401 Unauthorized. Possible causes:
  1. The API key is wrong
  2. The key belongs to a Computer Vision resource, not Document Intelligence
  3. The endpoint belongs to a different resource than the key
  4. The key was regenerated in the Azure Portal
Copy KEY 1 and the endpoint from the resource's "Keys and Endpoint" page."""

NOT_FOUND_HELP = """404 Not Found. The endpoint does not serve Document Intelligence.
Either create an Azure AI Services multi-service resource and use it for the
AZURE_VISION_* variables, or create a Document Intelligence resource and set
AZURE_DOCUMENT_INTELLIGENCE_KEY and AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT."""


def _mask(value: str) -> str:
    return f"{value[:8]}..." if value else "NOT SET"


async def main() -> int:
    settings = get_settings()
    client = LayoutAnalysisClient.from_settings(settings)

    logger.info(f"AZURE_VISION_KEY: {_mask(settings.AZURE_VISION_KEY)}")
    logger.info(f"AZURE_VISION_ENDPOINT: {settings.AZURE_VISION_ENDPOINT or 'NOT SET'}")
    logger.info(f"AZURE_DOCUMENT_INTELLIGENCE_KEY: {_mask(settings.AZURE_DOCUMENT_INTELLIGENCE_KEY)}")
    logger.info(f"AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT: {settings.AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT or 'NOT SET'}")

    if not client.is_configured:
        logger.error("Missing Azure credentials; set AZURE_VISION_* or AZURE_DOCUMENT_INTELLIGENCE_* in .env")
        return 1

    logger.info(f"Submitting test image to {client.analyze_url}")
    try:
        async with client.http_client() as http:
            response = await http.post(
                client.analyze_url,
                content=TEST_IMAGE,
                headers={**client.auth_headers, "Content-Type": "application/octet-stream"},
            )
    except httpx.HTTPError as e:
        logger.error(f"No response from {client.endpoint}: {e}. Check that the endpoint URL is correct.")
        return 1

    if response.status_code == 202:
        logger.info(f"Layout analysis is configured correctly. Operation-Location: {response.headers.get('Operation-Location')}")
        return 0
    if response.status_code == 401:
        logger.error(UNAUTHORIZED_HELP)
    elif response.status_code == 404:
        logger.error(NOT_FOUND_HELP)
    else:
        logger.error(f"Unexpected response {response.status_code}: {response.text}")
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
