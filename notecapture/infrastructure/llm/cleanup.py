"""AI cleanup of recognized text through Azure OpenAI chat completions."""

import asyncio
import base64
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncAzureOpenAI

from ...modules.common.results import AdvisoryResult
from ..azure.schemas import LayoutData
from ..config.settings import Settings, get_settings
from ..logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are an AI assistant that corrects and reformats OCR text. Your tasks:
1. Fix spelling errors and typos from OCR misreading
2. Correct word spacing issues (e.g., "wend-to-end" -> "end-to-end")
3. Fix capitalization and punctuation
4. Preserve the original structure and meaning
5. Use the reference context (if provided) to understand domain-specific terminology
6. When the image shows arrows, boxes or other diagram elements, infer the hierarchy they express and render it as nested lists or headings
7. Format the output in clear markdown with proper headings and lists

IMPORTANT: Only fix obvious OCR errors. Do not add new information or change the meaning.
Return only the markdown, without wrapping it in a code block."""

_FENCE_PATTERN = re.compile(r"^```[\w-]*[ \t]*\n(.*?)\n?```$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a code fence wrapped around the whole reply, if present."""
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


@dataclass(frozen=True)
class CleanedText:
    text: str
    model: Optional[str]


class TextCleanupClient:
    """Reformats OCR output with a chat/vision model; an advisory pipeline step."""

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        deployment: str = "gpt-4o",
        api_version: str = "2024-08-01-preview",
        temperature: float = 0.3,
        max_tokens: int = 2000,
        include_image: bool = True,
        client: Optional[AsyncAzureOpenAI] = None,
    ):
        self.endpoint = endpoint
        self.api_key = api_key
        self.deployment = deployment
        self.api_version = api_version
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.include_image = include_image
        self._client = client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "TextCleanupClient":
        settings = settings or get_settings()
        return cls(
            endpoint=settings.AZURE_OPENAI_ENDPOINT,
            api_key=settings.AZURE_OPENAI_API_KEY,
            deployment=settings.AZURE_OPENAI_DEPLOYMENT,
            api_version=settings.AZURE_OPENAI_API_VERSION,
            temperature=settings.CLEANUP_TEMPERATURE,
            max_tokens=settings.CLEANUP_MAX_TOKENS,
            include_image=settings.CLEANUP_INCLUDE_IMAGE,
            **kwargs,
        )

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.endpoint and self.api_key)

    def _get_client(self) -> AsyncAzureOpenAI:
        if self._client is None:
            self._client = AsyncAzureOpenAI(
                api_key=self.api_key,
                azure_endpoint=self.endpoint,
                api_version=self.api_version,
            )
        return self._client

    async def _image_part(self, image_path: Optional[str]) -> Optional[Dict[str, Any]]:
        if not (self.include_image and image_path):
            return None
        try:
            image_bytes = await asyncio.to_thread(Path(image_path).read_bytes)
        except OSError as e:
            logger.debug(f"Not attaching image to cleanup prompt: {e}")
            return None

        mime_type = mimetypes.guess_type(image_path)[0] or "image/png"
        encoded = base64.b64encode(image_bytes).decode("ascii")
        return {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}}

    async def build_messages(
        self,
        ocr_text: str,
        image_path: Optional[str] = None,
        context_block: str = "",
        layout: Optional[LayoutData] = None,
    ) -> List[Dict[str, Any]]:
        """Assemble the chat messages for one cleanup request."""
        prompt = f"Please clean and reformat this OCR text:\n\n{ocr_text}{context_block}"
        if layout is not None:
            prompt += f"\n\n## Detected Layout:\n{layout.outline()}"

        image_part = await self._image_part(image_path)
        user_content: Any = prompt
        if image_part is not None:
            user_content = [{"type": "text", "text": prompt}, image_part]

        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ]

    async def clean(
        self,
        ocr_text: str,
        image_path: Optional[str] = None,
        context_block: str = "",
        layout: Optional[LayoutData] = None,
    ) -> AdvisoryResult[CleanedText]:
        """Clean OCR text; on any failure the original text comes back unchanged."""
        unchanged = CleanedText(text=ocr_text, model=None)

        if not self.is_configured:
            logger.info("Azure OpenAI not configured, skipping AI post-processing")
            return AdvisoryResult.fallback(unchanged, "Azure OpenAI not configured")

        messages = await self.build_messages(ocr_text, image_path, context_block, layout)

        try:
            response = await self._get_client().chat.completions.create(
                model=self.deployment,
                messages=messages,  # type: ignore[arg-type]
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            content = response.choices[0].message.content
        except openai.OpenAIError as e:
            logger.warning(f"Azure OpenAI error: {e}")
            return AdvisoryResult.fallback(unchanged, str(e))
        except (IndexError, AttributeError) as e:
            logger.warning(f"Malformed Azure OpenAI response: {e}")
            return AdvisoryResult.fallback(unchanged, f"malformed response: {e}")

        if not content or not content.strip():
            logger.warning("Azure OpenAI returned an empty response, keeping OCR text")
            return AdvisoryResult.fallback(unchanged, "empty response")

        return AdvisoryResult.success(CleanedText(text=strip_code_fences(content), model=self.deployment))
