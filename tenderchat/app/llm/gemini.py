from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from tenderchat.core.config import AppConfig

CONNECT_TIMEOUT_SECONDS = 10.0
SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)
SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"

EMPTY_REPLY_FALLBACK = "I'm sorry, I couldn't generate a response at the moment."
MALFORMED_REPLY_FALLBACK = "I'm sorry, I encountered an unexpected response format."


@dataclass(frozen=True)
class GenerationSettings:
    temperature: float
    max_output_tokens: int
    top_p: float
    top_k: int


class GeminiClient:
    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        generation: GenerationSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._generation = generation
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    def build_payload(self, contents: list[dict[str, object]]) -> dict[str, Any]:
        return {
            "contents": contents,
            "generationConfig": {
                "temperature": self._generation.temperature,
                "maxOutputTokens": self._generation.max_output_tokens,
                "topP": self._generation.top_p,
                "topK": self._generation.top_k,
            },
            "safetySettings": [
                {"category": category, "threshold": SAFETY_THRESHOLD}
                for category in SAFETY_CATEGORIES
            ],
        }

    async def generate(self, contents: list[dict[str, object]]) -> httpx.Response:
        # The caller owns the overall deadline; only connecting is bounded here.
        timeout = httpx.Timeout(None, connect=CONNECT_TIMEOUT_SECONDS)
        async with httpx.AsyncClient(
            timeout=timeout, transport=self._transport
        ) as client:
            return await client.post(
                self.endpoint,
                json=self.build_payload(contents),
                headers={"x-goog-api-key": self._api_key},
            )


def build_gemini_client(
    config: AppConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GeminiClient:
    return GeminiClient(
        api_key=config.gemini_api_key or "",
        model=config.gemini_model,
        base_url=config.gemini_api_base_url,
        generation=GenerationSettings(
            temperature=config.temperature,
            max_output_tokens=config.max_output_tokens,
            top_p=config.top_p,
            top_k=config.top_k,
        ),
        transport=transport,
    )


def extract_reply_text(payload: object) -> str:
    """Pull ``candidates[0].content.parts[0].text`` out of a generateContent body.

    A missing path yields the empty-reply fallback; a path that exists but has
    the wrong shape yields the malformed-reply fallback.
    """
    if not isinstance(payload, dict):
        return MALFORMED_REPLY_FALLBACK
    candidates = payload.get("candidates")
    if candidates is None:
        return EMPTY_REPLY_FALLBACK
    if not isinstance(candidates, list):
        return MALFORMED_REPLY_FALLBACK
    if not candidates:
        return EMPTY_REPLY_FALLBACK

    first = candidates[0]
    if not isinstance(first, dict):
        return MALFORMED_REPLY_FALLBACK
    content = first.get("content")
    if content is None:
        return EMPTY_REPLY_FALLBACK
    if not isinstance(content, dict):
        return MALFORMED_REPLY_FALLBACK
    parts = content.get("parts")
    if parts is None:
        return EMPTY_REPLY_FALLBACK
    if not isinstance(parts, list):
        return MALFORMED_REPLY_FALLBACK
    if not parts:
        return EMPTY_REPLY_FALLBACK
    part = parts[0]
    if not isinstance(part, dict):
        return MALFORMED_REPLY_FALLBACK

    text = part.get("text")
    if isinstance(text, str) and text:
        return text
    return EMPTY_REPLY_FALLBACK
