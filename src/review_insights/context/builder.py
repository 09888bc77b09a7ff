"""Queue-fed worker that keeps the context cache warm as messages arrive."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from datetime import datetime, timedelta, timezone
from typing import Callable

from review_insights.analysis.chunker import format_message_line
from review_insights.analysis.images import ImageDescriber
from review_insights.analysis.models import ImageAnalysis
from review_insights.context.cache import BaseContextCache, ContextKey, ConversationContext
from review_insights.messages.models import Message, UserProfile

logger = logging.getLogger(__name__)

MAX_CONTEXT_LINES = 50
MAX_IMAGE_DESCRIPTIONS = 10
CONTEXT_TTL = timedelta(hours=24)


def _image_line(analysis: ImageAnalysis) -> str:
    line = analysis.description
    if analysis.observations:
        line += f" ({analysis.observations})"
    return (
        f"{line} [quality {analysis.quality_score:.1f}/10, "
        f"relevance {analysis.relevance_score:.1f}/10]"
    )


class ContextBuilder:
    """Builds ``ConversationContext`` entries incrementally.

    Messages are pushed with ``submit`` and consumed by a single worker task.
    Each image is described at most once: ids already recorded in the context
    are skipped, and an image currently being described is tracked in an
    in-flight set owned by this builder.

    Usage::

        async with ContextBuilder(cache, describer) as builder:
            await builder.submit(message, reviewer, target)
    """

    def __init__(
        self,
        cache: BaseContextCache,
        describer: ImageDescriber,
        max_context_lines: int = MAX_CONTEXT_LINES,
        context_ttl: timedelta = CONTEXT_TTL,
        max_queue_size: int = 0,
        clock: Callable[[], datetime] | None = None,
    ):
        self.cache = cache
        self.describer = describer
        self.max_context_lines = max_context_lines
        self.context_ttl = context_ttl
        self._now = clock or (lambda: datetime.now(timezone.utc))
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._in_flight: set[str] = set()
        self._worker: asyncio.Task | None = None

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    async def submit(self, message: Message, reviewer: UserProfile, target: UserProfile) -> None:
        await self._queue.put((message, reviewer, target))

    async def process(self, message: Message, reviewer: UserProfile, target: UserProfile) -> bool:
        """Fold one message into its context. Returns False if it was skipped."""
        key = ContextKey(message.conversation_id, reviewer.uid, target.uid)
        context = self.cache.get(key)
        if context is not None and message.id in context.processed_message_ids:
            return False

        description = None
        if message.is_image:
            if message.id in self._in_flight:
                logger.debug(f"Image {message.id} already being analyzed")
                return False
            self._in_flight.add(message.id)
            try:
                analysis = await self.describer.describe_safe(message, target)
            finally:
                self._in_flight.discard(message.id)
            description = _image_line(analysis)
            # Re-read: other messages may have landed while we awaited.
            context = self.cache.get(key)
            if context is not None and message.id in context.processed_message_ids:
                return False

        if context is None:
            context = ConversationContext(key=key)
        self._record(context, message, reviewer, target, description)
        self.cache.put(key, context)
        return True

    def _record(
        self,
        context: ConversationContext,
        message: Message,
        reviewer: UserProfile,
        target: UserProfile,
        description: str | None,
    ) -> None:
        context.processed_message_ids.append(message.id)
        context.message_count += 1
        if message.sender_id == reviewer.uid:
            context.reviewer_message_count += 1
        elif message.sender_id == target.uid:
            context.target_message_count += 1

        context.transcript.append(format_message_line(message, reviewer.uid))
        del context.transcript[: -self.max_context_lines]
        if description is not None:
            context.image_descriptions.append(description)
            del context.image_descriptions[:-MAX_IMAGE_DESCRIPTIONS]
        context.updated_at = self._now()

    async def _run(self) -> None:
        while True:
            message, reviewer, target = await self._queue.get()
            try:
                await self.process(message, reviewer, target)
            except Exception:
                logger.exception(f"Failed to update context for message {message.id}")
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run())

    async def drain(self) -> None:
        """Wait until every submitted message has been processed."""
        await self._queue.join()

    async def stop(self) -> None:
        if self._worker is None:
            return
        await self.drain()
        self._worker.cancel()
        with suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None

    def sweep(self) -> int:
        return self.cache.sweep(self.context_ttl)

    async def __aenter__(self) -> ContextBuilder:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
