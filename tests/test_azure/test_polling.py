"""Tests for the bounded Azure operation poll loop."""

import httpx
import pytest

from notecapture.infrastructure.azure.polling import PollFailed, PollSucceeded, PollTimedOut, poll_operation

OPERATION_URL = "https://vision.example.com/vision/v3.2/read/analyzeResults/abc"


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _client(statuses):
    """Answer each poll with the next payload in ``statuses``."""
    payloads = iter(statuses)
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=next(payloads))

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), requests


@pytest.mark.asyncio
async def test_poll_until_succeeded():
    client, requests = _client([{"status": "notStarted"}, {"status": "running"}, {"status": "succeeded", "x": 1}])
    sleep = RecordingSleep()

    outcome = await poll_operation(client, OPERATION_URL, {"Ocp-Apim-Subscription-Key": "k"}, sleep=sleep)

    assert outcome == PollSucceeded(data={"status": "succeeded", "x": 1})
    assert sleep.calls == [1.0, 1.0, 1.0]
    assert requests[0].headers["Ocp-Apim-Subscription-Key"] == "k"
    await client.aclose()


@pytest.mark.asyncio
async def test_failed_status_is_reported_not_raised():
    client, _ = _client([{"status": "Failed", "error": {"message": "Image too small"}}])

    outcome = await poll_operation(client, OPERATION_URL, {}, sleep=RecordingSleep())

    assert outcome == PollFailed(reason="Image too small")
    await client.aclose()


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    client, requests = _client([{"status": "running"}] * 5)
    sleep = RecordingSleep()

    outcome = await poll_operation(client, OPERATION_URL, {}, max_attempts=5, interval=0.5, sleep=sleep)

    assert outcome == PollTimedOut(attempts=5)
    assert len(requests) == 5
    assert sleep.calls == [0.5] * 5
    await client.aclose()


@pytest.mark.asyncio
async def test_http_error_propagates():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500, json={})))

    with pytest.raises(httpx.HTTPStatusError):
        await poll_operation(client, OPERATION_URL, {}, sleep=RecordingSleep())
    await client.aclose()


@pytest.mark.asyncio
async def test_non_json_status_body_is_a_failure():
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway hiccup</html>"))
    )

    outcome = await poll_operation(client, OPERATION_URL, {}, sleep=RecordingSleep())

    assert isinstance(outcome, PollFailed)
    assert outcome.reason.startswith("malformed response")
    await client.aclose()


@pytest.mark.asyncio
async def test_non_object_status_body_is_a_failure():
    client, _ = _client([["succeeded"]])

    outcome = await poll_operation(client, OPERATION_URL, {}, sleep=RecordingSleep())

    assert outcome == PollFailed(reason="malformed response: expected an object, got list")
    await client.aclose()
