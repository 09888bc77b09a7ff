"""Shared fixtures: message factory, user profiles and a fake completion client."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from review_insights.completions.client import BaseCompletionClient
from review_insights.messages.models import Message, UserProfile

BASE_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

VISION_REPLY = json.dumps({
    "description": "A golden retriever on a leash in a park.",
    "observations": "Dog looks relaxed and well cared for.",
    "tags": ["dog", "park", "leash"],
    "qualityScore": 8.5,
    "relevanceScore": 9.0,
})

REVIEW_REPLY = json.dumps({
    "rating": 4.5,
    "comment": "Reliable walker who kept me updated with photos.",
    "highlights": ["Quick replies", "Shared walk photos"],
    "reasoning": "Consistent communication.",
})


class FakeCompletionClient(BaseCompletionClient):
    """Records calls and replays canned responses.

    ``vision_errors`` maps image URLs to exceptions raised for that URL.
    ``vision_delay`` yields to the event loop inside each vision call.
    """

    def __init__(
        self,
        text_reply: str = REVIEW_REPLY,
        vision_reply: str = VISION_REPLY,
        text_error: Exception | None = None,
        vision_errors: dict | None = None,
        vision_delay: float = 0.0,
    ):
        self.text_reply = text_reply
        self.vision_reply = vision_reply
        self.text_error = text_error
        self.vision_errors = vision_errors or {}
        self.vision_delay = vision_delay
        self.text_calls: list[dict] = []
        self.vision_calls: list[str] = []

    async def complete(self, prompt, max_tokens=500, temperature=0.7, model=None):
        self.text_calls.append({"prompt": prompt, "max_tokens": max_tokens})
        if self.text_error is not None:
            raise self.text_error
        return {"text": self.text_reply, "input_tokens": 0, "output_tokens": 0, "model": "fake"}

    async def complete_vision(self, instruction, image_url, max_tokens=300, temperature=0.3, model=None):
        self.vision_calls.append(image_url)
        if self.vision_delay:
            await asyncio.sleep(self.vision_delay)
        if image_url in self.vision_errors:
            raise self.vision_errors[image_url]
        return {"text": self.vision_reply, "input_tokens": 0, "output_tokens": 0, "model": "fake"}


@pytest.fixture
def reviewer():
    return UserProfile(uid="owner-1", display_name="Olivia", role="owner")


@pytest.fixture
def target():
    return UserProfile(uid="walker-1", display_name="Walt", role="walker")


@pytest.fixture
def make_message():
    """Build messages; ``minutes`` is the offset from BASE_TIME."""
    ids = count(1)

    def _make(
        sender_id="owner-1",
        content="hello",
        minutes=0.0,
        type="text",
        conversation_id="conv-1",
        base=BASE_TIME,
        id=None,
    ):
        return Message(
            id=id or f"msg-{next(ids)}",
            conversation_id=conversation_id,
            sender_id=sender_id,
            type=type,
            content=content,
            created_at=base + timedelta(minutes=minutes),
        )

    return _make


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def fake_client_cls():
    return FakeCompletionClient


@pytest.fixture
def base_time():
    return BASE_TIME
