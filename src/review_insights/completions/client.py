"""OpenAI chat completion client over httpx, async with retry logic."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod

import httpx

from review_insights.exceptions import CompletionError, ConfigurationError, ResponseParseError

logger = logging.getLogger(__name__)


DEFAULT_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")
DEFAULT_TEXT_MODEL = os.environ.get("OPENAI_TEXT_MODEL", "gpt-4o-mini")
DEFAULT_VISION_MODEL = os.environ.get("OPENAI_VISION_MODEL", "gpt-4o-mini")


class BaseCompletionClient(ABC):
    """Abstract interface for text and vision completions.

    Both methods return a dict with keys: text, input_tokens, output_tokens, model.
    """

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        max_tokens: int = 500,
        temperature: float = 0.7,
        model: str | None = None,
    ) -> dict:
        """Send a single user prompt."""
        ...

    @abstractmethod
    async def complete_vision(
        self,
        instruction: str,
        image_url: str,
        max_tokens: int = 300,
        temperature: float = 0.3,
        model: str | None = None,
    ) -> dict:
        """Send an instruction together with one image URL."""
        ...


class AsyncOpenAIClient(BaseCompletionClient):
    """Async wrapper around the OpenAI chat completions endpoint.

    Args:
        api_key: Falls back to ``OPENAI_API_KEY``. A missing key raises
            ``ConfigurationError`` here rather than on the first call.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_TEXT_MODEL,
        vision_model: str = DEFAULT_VISION_MODEL,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "OpenAI API key is required. "
                "Pass it directly or set OPENAI_API_KEY in your environment."
            )
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.vision_model = vision_model
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport

    async def _post(self, payload: dict) -> dict:
        """POST to /chat/completions with retry on rate limits and timeouts."""
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    response = await client.post(url, json=payload, headers=headers)
            except httpx.TimeoutException:
                wait = 2 ** attempt
                logger.warning(f"Completion timeout, retrying in {wait}s (attempt {attempt + 1})")
                await asyncio.sleep(wait)
                continue
            except httpx.HTTPError as e:
                raise CompletionError(f"OpenAI request failed: {e}") from e

            if response.status_code == 429:
                wait = 2 ** (attempt + 1)
                logger.warning(f"Rate limited, retrying in {wait}s (attempt {attempt + 1})")
                await asyncio.sleep(wait)
                continue
            if response.status_code != 200:
                raise CompletionError(
                    f"OpenAI API error: {response.status_code} {response.text[:200]}"
                )
            try:
                return response.json()
            except json.JSONDecodeError as e:
                raise CompletionError(f"OpenAI returned invalid JSON: {e}") from e

        raise CompletionError(f"Failed after {self.max_retries} retries")

    def _unpack(self, data: dict, model: str) -> dict:
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionError(f"OpenAI response has no message content: {e}") from e
        if not isinstance(text, str):
            raise CompletionError("OpenAI response content is not text")
        usage = data.get("usage") or {}
        return {
            "text": text,
            "input_tokens": usage.get("prompt_tokens", 0),
            "output_tokens": usage.get("completion_tokens", 0),
            "model": data.get("model", model),
        }

    async def complete(
        self,
        prompt: str,
        max_tokens: int = 500,
        temperature: float = 0.7,
        model: str | None = None,
    ) -> dict:
        use_model = model or self.model
        data = await self._post({
            "model": use_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        return self._unpack(data, use_model)

    async def complete_vision(
        self,
        instruction: str,
        image_url: str,
        max_tokens: int = 300,
        temperature: float = 0.3,
        model: str | None = None,
    ) -> dict:
        use_model = model or self.vision_model
        data = await self._post({
            "model": use_model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": instruction},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        return self._unpack(data, use_model)


def extract_json_object(text: str) -> dict:
    """Decode the span between the first ``{`` and the last ``}``."""
    if not text:
        raise ResponseParseError("Empty model response")
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise ResponseParseError("No JSON object in model response")
    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Malformed JSON in model response: {e}") from e
    if not isinstance(data, dict):
        raise ResponseParseError("Model response JSON is not an object")
    return data
