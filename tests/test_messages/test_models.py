"""Tests for message models and the in-memory store."""

import asyncio
from dataclasses import replace

import pytest

from review_insights.messages.memory import InMemoryMessageStore
from review_insights.messages.models import Conversation, UserProfile, normalize_message_type


@pytest.mark.parametrize("raw, expected", [
    ("text", "text"),
    ("IMAGE", "image"),
    ("video", "video"),
    ("sticker", "other"),
    (None, "other"),
])
def test_normalize_message_type(raw, expected):
    assert normalize_message_type(raw) == expected


def test_profile_roles():
    walker = UserProfile("w", "Walt", "walker")
    owner = UserProfile("o", "Olivia")
    assert walker.is_walker and walker.role_text == "dog walker"
    assert owner.is_owner and owner.role_text == "dog owner"


def test_add_message_unknown_conversation(make_message):
    store = InMemoryMessageStore()
    with pytest.raises(KeyError):
        store.add_message(make_message(conversation_id="missing"))


def test_memory_store_filters(make_message, base_time):
    store = InMemoryMessageStore()
    store.add_conversation(Conversation("conv-1", ["owner-1", "walker-1"]))
    deleted = make_message("owner-1", "oops", 1)
    store.add_messages([
        make_message("walker-1", "https://img/1.jpg", 2, type="image"),
        make_message("owner-1", "hi", 0),
    ])
    store.add_message(replace(deleted, is_deleted=True))

    all_messages = asyncio.run(store.fetch_conversation_messages("conv-1", base_time))
    assert [m.content for m in all_messages] == ["hi", "https://img/1.jpg"]
    images = asyncio.run(
        store.fetch_conversation_messages("conv-1", base_time, message_type="image")
    )
    assert [m.is_image for m in images] == [True]
    assert asyncio.run(store.get_direct_conversation("walker-1", "owner-1")).id == "conv-1"
