"""Composition root wiring the store, client, cache, builder and generator."""

from __future__ import annotations

from dataclasses import dataclass

from review_insights.analysis.aggregator import ConversationAnalyzer
from review_insights.analysis.images import ImageDescriber
from review_insights.completions.client import AsyncOpenAIClient, BaseCompletionClient
from review_insights.config import AnalysisSettings, load_settings
from review_insights.context.builder import ContextBuilder
from review_insights.context.cache import BaseContextCache, InMemoryContextCache
from review_insights.messages.access import MessageStoreAccess
from review_insights.messages.base import BaseMessageStore
from review_insights.review.generator import ReviewSuggestionGenerator


@dataclass
class ReviewPipeline:
    """Everything one app session needs, sharing a single context cache."""

    settings: AnalysisSettings
    client: BaseCompletionClient
    cache: BaseContextCache
    analyzer: ConversationAnalyzer
    context_builder: ContextBuilder
    generator: ReviewSuggestionGenerator


def build_pipeline(
    store: BaseMessageStore,
    client: BaseCompletionClient | None = None,
    settings: AnalysisSettings | None = None,
    cache: BaseContextCache | None = None,
    api_key: str | None = None,
) -> ReviewPipeline:
    """Assemble a ``ReviewPipeline``.

    Without an explicit ``client`` an ``AsyncOpenAIClient`` is created, which
    raises ``ConfigurationError`` right away if no API key is available.
    """
    if settings is None:
        settings = load_settings()
    if client is None:
        client = AsyncOpenAIClient(api_key=api_key, timeout=settings.request_timeout)
    if cache is None:
        cache = InMemoryContextCache()

    describer = ImageDescriber(
        client,
        max_images=settings.max_images,
        max_concurrency=settings.image_concurrency,
    )
    analyzer = ConversationAnalyzer(MessageStoreAccess(store), describer, settings)
    builder = ContextBuilder(
        cache,
        describer,
        max_context_lines=settings.max_context_lines,
        context_ttl=settings.context_ttl,
    )
    generator = ReviewSuggestionGenerator(client, analyzer, cache)

    return ReviewPipeline(
        settings=settings,
        client=client,
        cache=cache,
        analyzer=analyzer,
        context_builder=builder,
        generator=generator,
    )
