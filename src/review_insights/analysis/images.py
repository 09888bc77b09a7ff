"""Vision-model descriptions of image messages, fail-soft per image."""

from __future__ import annotations

import asyncio
import logging
import math

from review_insights.analysis.models import ImageAnalysis
from review_insights.completions.client import BaseCompletionClient, extract_json_object
from review_insights.exceptions import ConfigurationError, ImageAnalysisError
from review_insights.messages.models import Message, UserProfile

logger = logging.getLogger(__name__)

MAX_IMAGES = 10
PLACEHOLDER_DESCRIPTION = "Image analysis failed"

IMAGE_INSTRUCTION = """Analyze this image in the context of dog walking/pet care services.
It was shared in a conversation with a {role}. Provide:
1. A detailed description (2-3 sentences)
2. Dog-related observations (mood, environment, care quality)
3. Relevant tags
4. Quality score (0-10 for image clarity/usefulness)
5. Relevance score (0-10 for review context)

Return as JSON:
{{
  "description": "detailed description",
  "observations": "dog-specific observations",
  "tags": ["tag1", "tag2"],
  "qualityScore": 8.5,
  "relevanceScore": 9.0
}}"""


def _score(value) -> float:
    """Coerce a model-reported score into [0, 10]; anything unusable is 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(score):
        return 0.0
    return min(max(score, 0.0), 10.0)


def _tags(value) -> tuple[str, ...]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return ()
    return tuple(str(tag).strip() for tag in value if isinstance(tag, (str, int, float)) and str(tag).strip())


def _text(value, default: str = "") -> str:
    return value.strip() if isinstance(value, str) and value.strip() else default


def placeholder_analysis(message: Message) -> ImageAnalysis:
    return ImageAnalysis(
        message_id=message.id,
        sender_id=message.sender_id,
        timestamp=message.created_at,
        image_url=message.content,
        description=PLACEHOLDER_DESCRIPTION,
        degraded=True,
    )


class ImageDescriber:
    """Turns image messages into ``ImageAnalysis`` records.

    Args:
        max_images: Only the most recent ``max_images`` images are analyzed.
        max_concurrency: Vision calls in flight at once; 1 keeps them sequential.
    """

    def __init__(
        self,
        client: BaseCompletionClient,
        max_images: int = MAX_IMAGES,
        max_concurrency: int = 1,
        max_tokens: int = 300,
        temperature: float = 0.3,
    ):
        self.client = client
        self.max_images = max_images
        self.max_concurrency = max(1, max_concurrency)
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def describe(self, message: Message, target: UserProfile) -> ImageAnalysis:
        """Analyze one image. Raises ``ImageAnalysisError`` on any failure."""
        try:
            result = await self.client.complete_vision(
                IMAGE_INSTRUCTION.format(role=target.role_text),
                message.content,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            data = extract_json_object(result["text"])
        except ConfigurationError:
            raise
        except Exception as e:
            raise ImageAnalysisError(f"Image analysis failed for {message.id}: {e}") from e

        return ImageAnalysis(
            message_id=message.id,
            sender_id=message.sender_id,
            timestamp=message.created_at,
            image_url=message.content,
            description=_text(data.get("description"), "No description available"),
            observations=_text(data.get("observations")),
            tags=_tags(data.get("tags")),
            quality_score=_score(data.get("qualityScore")),
            relevance_score=_score(data.get("relevanceScore")),
        )

    async def describe_safe(self, message: Message, target: UserProfile) -> ImageAnalysis:
        """Like ``describe`` but substitutes a placeholder on failure."""
        try:
            return await self.describe(message, target)
        except ImageAnalysisError as e:
            logger.warning(f"{e}; using placeholder")
            return placeholder_analysis(message)

    async def describe_all(
        self, messages: list[Message], target: UserProfile
    ) -> list[ImageAnalysis]:
        """One analysis per selected image, in chronological order."""
        images = [m for m in messages if m.is_image]
        if self.max_images <= 0 or not images:
            return []
        selected = images[-self.max_images :]

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(message: Message) -> ImageAnalysis:
            async with semaphore:
                return await self.describe_safe(message, target)

        tasks = [asyncio.create_task(run(m)) for m in selected]
        try:
            analyses = await asyncio.gather(*tasks)
        except BaseException:
            # describe_safe only lets ConfigurationError through; stop the rest of the batch.
            for task in tasks:
                task.cancel()
            raise
        degraded = sum(1 for a in analyses if a.degraded)
        logger.info(f"Analyzed {len(analyses)} images ({degraded} degraded)")
        return list(analyses)
