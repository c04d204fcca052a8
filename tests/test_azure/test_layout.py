import httpx
import pytest

from notecapture.infrastructure.azure.layout import LAYOUT_ANALYZE_PATH, LayoutAnalysisClient, parse_layout

ENDPOINT = "https://layout.example.com"
OPERATION_URL = f"{ENDPOINT}/formrecognizer/documentModels/prebuilt-layout/analyzeResults/op-9"

LAYOUT_RESULT = {
    "status": "succeeded",
    "analyzeResult": {
        "pages": [{"pageNumber": 1}],
        "paragraphs": [
            {"role": "title", "content": "Sprint Review"},
            {"content": "Demo went well"},
            {"role": "sectionHeading", "content": "Risks"},
        ],
        "tables": [{"rowCount": 3, "columnCount": 2}],
    },
}


async def _no_sleep(seconds: float) -> None:
    return None


def _analyzer(handler, **kwargs) -> LayoutAnalysisClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LayoutAnalysisClient(ENDPOINT, "secret", client=client, sleep=_no_sleep, **kwargs)


@pytest.fixture
def image_path(tmp_path, png_bytes):
    path = tmp_path / "whiteboard.png"
    path.write_bytes(png_bytes)
    return str(path)


def test_parse_layout():
    layout = parse_layout(LAYOUT_RESULT)

    assert layout.page_count == 1
    assert [p.role for p in layout.paragraphs] == ["title", None, "sectionHeading"]
    assert layout.tables[0].row_count == 3
    assert layout.outline() == (
        "Pages: 1\n- title: Sprint Review\n- sectionHeading: Risks\n- table 1: 3 rows x 2 columns"
    )


@pytest.mark.asyncio
async def test_analyze_success(image_path):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "POST":
            return httpx.Response(202, headers={"Operation-Location": OPERATION_URL})
        return httpx.Response(200, json=LAYOUT_RESULT)

    result = await _analyzer(handler, api_version="2024-02-29-preview").analyze(image_path)

    assert result.ok
    assert result.value.page_count == 1
    assert requests[0].url.path == LAYOUT_ANALYZE_PATH
    assert requests[0].url.params["api-version"] == "2024-02-29-preview"


@pytest.mark.asyncio
async def test_analyze_disabled(image_path):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    result = await _analyzer(handler, enabled=False).analyze(image_path)

    assert not result.ok
    assert result.value is None


@pytest.mark.asyncio
async def test_analyze_not_configured(image_path):
    result = await LayoutAnalysisClient("", "").analyze(image_path)

    assert not result.ok
    assert result.error == "Layout analysis not configured"


@pytest.mark.asyncio
async def test_analyze_http_error_falls_back(image_path):
    result = await _analyzer(lambda request: httpx.Response(404, json={"error": {"message": "Resource not found"}})).analyze(
        image_path
    )

    assert not result.ok
    assert result.value is None
    assert result.error == "Resource not found"


@pytest.mark.asyncio
async def test_analyze_failed_operation_falls_back(image_path):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(202, headers={"Operation-Location": OPERATION_URL})
        return httpx.Response(200, json={"status": "failed", "error": {"message": "Unsupported content"}})

    result = await _analyzer(handler).analyze(image_path)

    assert not result.ok
    assert result.error == "Unsupported content"


@pytest.mark.asyncio
async def test_analyze_malformed_status_body_falls_back(image_path):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(202, headers={"Operation-Location": OPERATION_URL})
        return httpx.Response(200, text="<html>gateway hiccup</html>")

    result = await _analyzer(handler).analyze(image_path)

    assert not result.ok
    assert result.value is None
    assert result.error.startswith("malformed response")
