"""Bounded polling of Azure long-running operations.

Azure's Read and Document Intelligence APIs answer a submission with an
``Operation-Location`` URL that has to be polled until its ``status`` is
``succeeded`` or ``failed``. ``poll_operation`` turns that into a bounded
loop with a tagged outcome instead of raising past the loop.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Union

import httpx

TERMINAL_SUCCESS = "succeeded"
TERMINAL_FAILURE = "failed"


@dataclass(frozen=True)
class PollSucceeded:
    data: Dict[str, Any]


@dataclass(frozen=True)
class PollFailed:
    reason: str


@dataclass(frozen=True)
class PollTimedOut:
    attempts: int


PollOutcome = Union[PollSucceeded, PollFailed, PollTimedOut]


def _failure_reason(data: Mapping[str, Any]) -> str:
    error = data.get("error")
    if isinstance(error, Mapping) and error.get("message"):
        return str(error["message"])
    return "operation reported status 'failed'"


async def poll_operation(
    client: httpx.AsyncClient,
    operation_url: str,
    headers: Mapping[str, str],
    max_attempts: int = 30,
    interval: float = 1.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> PollOutcome:
    """Poll ``operation_url`` until it reaches a terminal status or the budget runs out.

    Each attempt waits ``interval`` seconds before asking, so the first
    request goes out one interval after submission.

    Args:
        client: HTTP client used for the GET requests
        operation_url: The ``Operation-Location`` returned on submission
        headers: Authentication headers
        max_attempts: Number of status requests before giving up
        interval: Seconds to wait before each request
        sleep: Suspension primitive, replaceable in tests

    Returns:
        PollSucceeded with the final payload, PollFailed with the service's
        reason or a malformed-response reason, or PollTimedOut after
        ``max_attempts`` non-terminal answers.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status responses.
    """
    for _ in range(max_attempts):
        await sleep(interval)

        response = await client.get(operation_url, headers=dict(headers))
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError:
            return PollFailed(reason=f"malformed response: status body is not JSON (HTTP {response.status_code})")
        if not isinstance(data, Mapping):
            return PollFailed(reason=f"malformed response: expected an object, got {type(data).__name__}")

        status = str(data.get("status", "")).lower()
        if status == TERMINAL_SUCCESS:
            return PollSucceeded(data=data)
        if status == TERMINAL_FAILURE:
            return PollFailed(reason=_failure_reason(data))

    return PollTimedOut(attempts=max_attempts)
