"""Review suggestion generation with a cached fast path and a full-analysis fallback."""

from __future__ import annotations

import logging
from dataclasses import replace

from review_insights.analysis.aggregator import ConversationAnalyzer
from review_insights.completions.client import BaseCompletionClient
from review_insights.context.cache import BaseContextCache, ContextKey
from review_insights.messages.models import UserProfile
from review_insights.review.models import AiReviewSuggestion, default_suggestion
from review_insights.review.parser import parse_review_response
from review_insights.review.prompts import build_fast_prompt, build_full_prompt

logger = logging.getLogger(__name__)

FAST_MAX_TOKENS = 300
FULL_MAX_TOKENS = 500
TEMPERATURE = 0.7


class ReviewSuggestionGenerator:
    """Produces an ``AiReviewSuggestion`` for a reviewer/target pair.

    If a cached context exists for ``(conversation_id, reviewer, target)`` a
    compact prompt is built from it; otherwise the full analysis runs. Any
    failure on either path yields ``default_suggestion()``.
    """

    def __init__(
        self,
        client: BaseCompletionClient,
        analyzer: ConversationAnalyzer,
        cache: BaseContextCache | None = None,
        temperature: float = TEMPERATURE,
        model: str | None = None,
    ):
        self.client = client
        self.analyzer = analyzer
        self.cache = cache
        self.temperature = temperature
        self.model = model

    async def generate_review_suggestion(
        self,
        reviewer_id: str,
        target_id: str,
        reviewer: UserProfile,
        target: UserProfile,
        conversation_id: str | None = None,
    ) -> AiReviewSuggestion:
        try:
            if reviewer.uid != reviewer_id or target.uid != target_id:
                logger.warning(
                    f"Profile ids ({reviewer.uid}, {target.uid}) differ from "
                    f"requested ({reviewer_id}, {target_id}); using requested ids"
                )
                reviewer = replace(reviewer, uid=reviewer_id)
                target = replace(target, uid=target_id)

            suggestion = await self._fast_path(reviewer, target, conversation_id)
            if suggestion is None:
                suggestion = await self._full_path(reviewer, target)
            return suggestion
        except Exception:
            logger.exception(f"Review suggestion failed for {reviewer_id} -> {target_id}")
            return default_suggestion()

    async def _fast_path(
        self,
        reviewer: UserProfile,
        target: UserProfile,
        conversation_id: str | None,
    ) -> AiReviewSuggestion | None:
        if conversation_id is None or self.cache is None:
            return None
        context = self.cache.get(ContextKey(conversation_id, reviewer.uid, target.uid))
        if context is None or context.is_empty:
            return None

        logger.info(f"Using cached context for conversation {conversation_id}")
        prompt = build_fast_prompt(reviewer, target, context.render())
        result = await self.client.complete(
            prompt,
            max_tokens=FAST_MAX_TOKENS,
            temperature=self.temperature,
            model=self.model,
        )
        return parse_review_response(
            result["text"],
            image_descriptions=context.image_descriptions,
        )

    async def _full_path(self, reviewer: UserProfile, target: UserProfile) -> AiReviewSuggestion:
        analysis = await self.analyzer.analyze(reviewer, target)
        if analysis.is_empty:
            logger.info(f"No shared history for {reviewer.uid} -> {target.uid}; default suggestion")
            return default_suggestion("No recent conversation found.")

        prompt = build_full_prompt(reviewer, target, analysis)
        result = await self.client.complete(
            prompt,
            max_tokens=FULL_MAX_TOKENS,
            temperature=self.temperature,
            model=self.model,
        )
        return parse_review_response(
            result["text"],
            image_descriptions=[img.description for img in analysis.image_analyses],
            fallback_highlights=analysis.key_insights,
            detailed_image_analyses=analysis.image_analyses,
        )
