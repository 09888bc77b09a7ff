"""OpenAI completion client."""

from review_insights.completions.client import (
    DEFAULT_TEXT_MODEL,
    DEFAULT_VISION_MODEL,
    AsyncOpenAIClient,
    BaseCompletionClient,
    extract_json_object,
)

__all__ = [
    "DEFAULT_TEXT_MODEL",
    "DEFAULT_VISION_MODEL",
    "AsyncOpenAIClient",
    "BaseCompletionClient",
    "extract_json_object",
]
