"""Tests for the in-memory context cache."""

from datetime import timedelta

from review_insights.context.cache import ContextKey, ConversationContext, InMemoryContextCache

KEY = ContextKey("conv-1", "owner-1", "walker-1")


def test_get_missing_returns_none():
    assert InMemoryContextCache().get(KEY) is None


def test_put_and_get_are_snapshots():
    cache = InMemoryContextCache()
    context = ConversationContext(key=KEY, transcript=["line"], message_count=1)
    cache.put(KEY, context)

    context.transcript.append("mutated after put")
    first = cache.get(KEY)
    assert first.transcript == ["line"]

    first.transcript.append("mutated after get")
    first.processed_message_ids.append("m9")
    second = cache.get(KEY)
    assert second.transcript == ["line"]
    assert list(second.processed_message_ids) == []


def test_last_write_wins():
    cache = InMemoryContextCache()
    cache.put(KEY, ConversationContext(key=KEY, message_count=1))
    cache.put(KEY, ConversationContext(key=KEY, message_count=2))
    assert cache.get(KEY).message_count == 2
    assert len(cache) == 1


def test_sweep_evicts_stale(base_time):
    cache = InMemoryContextCache(clock=lambda: base_time)
    fresh_key = ContextKey("conv-2", "owner-1", "walker-1")
    cache.put(KEY, ConversationContext(key=KEY, updated_at=base_time - timedelta(hours=25)))
    cache.put(fresh_key, ConversationContext(key=fresh_key, updated_at=base_time - timedelta(hours=1)))

    assert cache.sweep(timedelta(hours=24)) == 1
    assert KEY not in cache
    assert fresh_key in cache
    assert cache.sweep(timedelta(hours=24)) == 0


def test_render():
    context = ConversationContext(
        key=KEY,
        transcript=["[09:00] REVIEWER: hi"],
        image_descriptions=["Dog in park"],
        message_count=1,
        reviewer_message_count=1,
    )
    text = context.render()
    assert text.startswith("=== CACHED CONVERSATION CONTEXT ===")
    assert "Messages observed: 1 (reviewer 1, target 0)" in text
    assert "[09:00] REVIEWER: hi" in text
    assert "- Dog in park" in text
    assert not context.is_empty
    assert ConversationContext(key=KEY).is_empty
