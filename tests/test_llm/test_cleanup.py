from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from notecapture.infrastructure.azure.schemas import LayoutData, LayoutParagraph
from notecapture.infrastructure.llm.cleanup import SYSTEM_PROMPT, TextCleanupClient, strip_code_fences


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _cleanup_client(create: AsyncMock, **kwargs) -> TextCleanupClient:
    openai_client = MagicMock()
    openai_client.chat.completions.create = create
    return TextCleanupClient("https://openai.example.com", "key", deployment="notes-gpt4o", client=openai_client, **kwargs)


@pytest.mark.parametrize(
    "reply, expected",
    [
        ("```\n# Notes\n- one\n```", "# Notes\n- one"),
        ("```markdown\n# Notes\n```", "# Notes"),
        ("  # Notes  ", "# Notes"),
        ("Use ```code``` inline", "Use ```code``` inline"),
    ],
)
def test_strip_code_fences(reply, expected):
    assert strip_code_fences(reply) == expected


@pytest.mark.asyncio
async def test_clean_not_configured():
    result = await TextCleanupClient("", "").clean("raw ocr")

    assert not result.ok
    assert result.value.text == "raw ocr"
    assert result.value.model is None


@pytest.mark.asyncio
async def test_clean_success():
    create = AsyncMock(return_value=_completion("```markdown\n# Meeting\n- ship it\n```"))

    result = await _cleanup_client(create, temperature=0.2, max_tokens=512).clean("meetng\nship it")

    assert result.ok
    assert result.value.text == "# Meeting\n- ship it"
    assert result.value.model == "notes-gpt4o"
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "notes-gpt4o"
    assert kwargs["temperature"] == 0.2
    assert kwargs["max_tokens"] == 512


@pytest.mark.asyncio
async def test_clean_api_error_keeps_text():
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://openai.example.com"))
    create = AsyncMock(side_effect=error)

    result = await _cleanup_client(create).clean("raw ocr")

    assert not result.ok
    assert result.value.text == "raw ocr"
    assert result.value.model is None


@pytest.mark.asyncio
async def test_clean_empty_reply_keeps_text():
    result = await _cleanup_client(AsyncMock(return_value=_completion("   "))).clean("raw ocr")

    assert not result.ok
    assert result.error == "empty response"
    assert result.value.text == "raw ocr"


@pytest.mark.asyncio
async def test_build_messages_text_only():
    client = TextCleanupClient("https://openai.example.com", "key", include_image=False)
    layout = LayoutData(page_count=1, paragraphs=[LayoutParagraph(role="title", content="Roadmap")])

    messages = await client.build_messages(
        "raw ocr", image_path="/nowhere.png", context_block="\n\n## Reference Context:\nterms", layout=layout
    )

    assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
    prompt = messages[1]["content"]
    assert prompt.startswith("Please clean and reformat this OCR text:\n\nraw ocr")
    assert "## Reference Context:\nterms" in prompt
    assert "## Detected Layout:\nPages: 1\n- title: Roadmap" in prompt


@pytest.mark.asyncio
async def test_build_messages_attaches_image(tmp_path, png_bytes):
    image = tmp_path / "note.png"
    image.write_bytes(png_bytes)
    client = TextCleanupClient("https://openai.example.com", "key")

    messages = await client.build_messages("raw ocr", image_path=str(image))

    text_part, image_part = messages[1]["content"]
    assert text_part == {"type": "text", "text": "Please clean and reformat this OCR text:\n\nraw ocr"}
    assert image_part["image_url"]["url"].startswith("data:image/png;base64,")


@pytest.mark.asyncio
async def test_build_messages_unreadable_image_is_skipped(tmp_path):
    client = TextCleanupClient("https://openai.example.com", "key")

    messages = await client.build_messages("raw ocr", image_path=str(tmp_path / "gone.png"))

    assert messages[1]["content"] == "Please clean and reformat this OCR text:\n\nraw ocr"


@pytest.mark.asyncio
async def test_clean_sends_image_with_prompt(tmp_path, png_bytes):
    image = tmp_path / "note.png"
    image.write_bytes(png_bytes)
    create = AsyncMock(return_value=_completion("# Notes"))

    await _cleanup_client(create).clean("raw ocr", image_path=str(image))

    user_content = create.await_args.kwargs["messages"][1]["content"]
    assert user_content[1]["image_url"]["url"].startswith("data:image/png;base64,")
