"""Shared submit/poll plumbing for Azure AI services."""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

import httpx

from .polling import PollOutcome, poll_operation

SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"


class OperationLocationMissing(Exception):
    """The service accepted a submission without telling us where to poll."""


class AzureOperationClient:
    """Base class for services that follow Azure's submit-then-poll protocol.

    Subclasses supply the analyze URL and interpret the final payload.
    An ``httpx.AsyncClient`` can be injected for tests; otherwise one is
    created per call and closed afterwards.
    """

    def __init__(
        self,
        endpoint: str,
        key: str,
        max_attempts: int = 30,
        interval: float = 1.0,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.key = key
        self.max_attempts = max_attempts
        self.interval = interval
        self.timeout = timeout
        self._client = client
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.key)

    @property
    def auth_headers(self) -> Dict[str, str]:
        return {SUBSCRIPTION_KEY_HEADER: self.key}

    @asynccontextmanager
    async def http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return

        client = httpx.AsyncClient(timeout=self.timeout)
        try:
            yield client
        finally:
            await client.aclose()

    @staticmethod
    async def read_image(image_path: str) -> bytes:
        return await asyncio.to_thread(Path(image_path).read_bytes)

    async def submit_and_poll(self, client: httpx.AsyncClient, analyze_url: str, image_bytes: bytes) -> PollOutcome:
        """Submit raw image bytes and poll the returned operation.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses.
            OperationLocationMissing: If the submission response has no Operation-Location header.
        """
        response = await client.post(
            analyze_url,
            content=image_bytes,
            headers={**self.auth_headers, "Content-Type": "application/octet-stream"},
        )
        response.raise_for_status()

        operation_url = response.headers.get("operation-location")
        if not operation_url:
            raise OperationLocationMissing("No operation location returned from Azure")

        return await poll_operation(
            client,
            operation_url,
            self.auth_headers,
            max_attempts=self.max_attempts,
            interval=self.interval,
            sleep=self._sleep,
        )


def describe_http_error(error: httpx.HTTPError) -> str:
    """Prefer the service's own error message over httpx's generic text."""
    if isinstance(error, httpx.HTTPStatusError):
        try:
            body = error.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("error")
            if isinstance(detail, dict) and detail.get("message"):
                return str(detail["message"])
        return f"HTTP {error.response.status_code} from {error.request.url.host}"
    return str(error) or error.__class__.__name__
