"""Tests for pipeline assembly."""

import asyncio

import pytest

from review_insights import ConfigurationError, build_pipeline
from review_insights.config import AnalysisSettings
from review_insights.context.cache import ContextKey, InMemoryContextCache
from review_insights.messages.memory import InMemoryMessageStore
from review_insights.messages.models import Conversation


def test_requires_api_key_without_client(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ConfigurationError, match="API key is required"):
        build_pipeline(InMemoryMessageStore(), settings=AnalysisSettings())


def test_settings_flow_into_components(fake_client):
    settings = AnalysisSettings(max_images=4, image_concurrency=2, max_context_lines=7)
    pipeline = build_pipeline(InMemoryMessageStore(), client=fake_client, settings=settings)

    assert pipeline.analyzer.describer.max_images == 4
    assert pipeline.analyzer.settings is settings
    assert pipeline.context_builder.max_context_lines == 7
    assert pipeline.generator.cache is pipeline.cache
    assert pipeline.context_builder.cache is pipeline.cache


def test_injected_empty_cache_is_kept(fake_client):
    cache = InMemoryContextCache()
    pipeline = build_pipeline(
        InMemoryMessageStore(), client=fake_client, settings=AnalysisSettings(), cache=cache
    )
    assert pipeline.cache is cache


def test_builder_warms_cache_for_generator(make_message, fake_client, reviewer, target):
    store = InMemoryMessageStore()
    store.add_conversation(Conversation("conv-1", ["owner-1", "walker-1"]))
    pipeline = build_pipeline(store, client=fake_client, settings=AnalysisSettings())

    async def run():
        async with pipeline.context_builder as builder:
            await builder.submit(make_message("owner-1", "Walk at 3?", 0), reviewer, target)
            await builder.submit(make_message("walker-1", "Yes!", 1), reviewer, target)
        return await pipeline.generator.generate_review_suggestion(
            "owner-1", "walker-1", reviewer, target, conversation_id="conv-1"
        )

    suggestion = asyncio.run(run())
    assert pipeline.cache.get(ContextKey("conv-1", "owner-1", "walker-1")).message_count == 2
    assert suggestion.suggested_rating == 4.5
    assert [c["max_tokens"] for c in fake_client.text_calls] == [300]
