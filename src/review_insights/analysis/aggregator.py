"""Orchestrates message lookup, chunking, image and pattern analysis."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from review_insights.analysis.chunker import chunk_conversation
from review_insights.analysis.images import ImageDescriber
from review_insights.analysis.models import ConversationAnalysis, ImageAnalysis
from review_insights.analysis.patterns import (
    analyze_communication_patterns,
    compute_conversation_stats,
)
from review_insights.config import AnalysisSettings
from review_insights.messages.access import MessageStoreAccess
from review_insights.messages.models import Message, UserProfile

logger = logging.getLogger(__name__)

LOW_ENGAGEMENT_SHARE = 0.3
HIGH_SCORE = 7.0


def extract_key_insights(
    messages: list[Message],
    image_analyses: list[ImageAnalysis],
    target: UserProfile,
) -> list[str]:
    insights = []

    if messages:
        target_count = sum(1 for m in messages if m.sender_id == target.uid)
        if target_count == 0:
            insights.append("Target user did not respond to any messages")
        elif target_count / len(messages) < LOW_ENGAGEMENT_SHARE:
            insights.append("Target user had limited engagement in conversation")

    high_quality = sum(1 for img in image_analyses if img.quality_score > HIGH_SCORE)
    if high_quality:
        insights.append(f"{high_quality} high-quality images shared")

    relevant = sum(1 for img in image_analyses if img.relevance_score > HIGH_SCORE)
    if relevant:
        insights.append(f"{relevant} relevant service-related images")

    return insights


class ConversationAnalyzer:
    """Builds a ``ConversationAnalysis`` for a reviewer/target pair.

    Lookback windows are tried from narrowest to widest; the first one
    yielding at least ``settings.min_messages`` messages wins, otherwise the
    widest window's result (possibly empty) is used.
    """

    def __init__(
        self,
        access: MessageStoreAccess,
        describer: ImageDescriber,
        settings: AnalysisSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.access = access
        self.describer = describer
        self.settings = settings or AnalysisSettings()
        self._now = clock or (lambda: datetime.now(timezone.utc))

    async def _select_window(
        self, reviewer_id: str, target_id: str
    ) -> tuple[list[Message], datetime]:
        """Messages of the chosen lookback window and the start of that window."""
        messages: list[Message] = []
        now = self._now()
        since = now
        for window in self.settings.lookback_windows:
            since = now - window
            messages = await self.access.fetch_messages_since(
                reviewer_id, target_id, since, limit=self.settings.message_limit
            )
            logger.debug(f"Lookback {window}: {len(messages)} messages")
            if len(messages) >= self.settings.min_messages:
                break
        return messages, since

    async def gather_messages(self, reviewer_id: str, target_id: str) -> list[Message]:
        messages, _ = await self._select_window(reviewer_id, target_id)
        return messages

    async def analyze(self, reviewer: UserProfile, target: UserProfile) -> ConversationAnalysis:
        logger.info(f"Analyzing conversation {reviewer.uid} -> {target.uid}")
        messages, since = await self._select_window(reviewer.uid, target.uid)
        if not messages:
            logger.info(f"No messages between {reviewer.uid} and {target.uid} in any window")
            return ConversationAnalysis.empty()

        s = self.settings
        chunks = chunk_conversation(
            messages,
            reviewer,
            target,
            max_chunk_size=s.max_chunk_size,
            max_time_gap=s.max_time_gap,
            slow_reply_threshold=s.slow_reply_threshold,
        )
        # Images come from their own query over the same window, not from the capped list.
        images = await self.access.fetch_messages_by_type_since(
            reviewer.uid, target.uid, "image", since, limit=s.message_limit
        )
        image_analyses = await self.describer.describe_all(images, target)

        return ConversationAnalysis(
            chunks=chunks,
            image_analyses=image_analyses,
            stats=compute_conversation_stats(messages, reviewer.uid, target.uid),
            patterns=analyze_communication_patterns(messages, reviewer.uid),
            key_insights=extract_key_insights(messages, image_analyses, target),
            analyzed_at=self._now(),
        )
