"""Process-local message store."""

from __future__ import annotations

from datetime import datetime

from review_insights.messages.base import BaseMessageStore
from review_insights.messages.models import Conversation, Message


class InMemoryMessageStore(BaseMessageStore):
    """Keeps conversations and messages in plain dicts."""

    def __init__(self):
        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, list[Message]] = {}

    def add_conversation(self, conversation: Conversation) -> None:
        self._conversations[conversation.id] = conversation
        self._messages.setdefault(conversation.id, [])

    def add_message(self, message: Message) -> None:
        if message.conversation_id not in self._conversations:
            raise KeyError(f"Unknown conversation: {message.conversation_id}")
        self._messages[message.conversation_id].append(message)

    def add_messages(self, messages: list[Message]) -> None:
        for message in messages:
            self.add_message(message)

    async def get_direct_conversation(self, user_a: str, user_b: str) -> Conversation | None:
        for conversation in self._conversations.values():
            if (
                conversation.is_direct
                and conversation.includes(user_a)
                and conversation.includes(user_b)
            ):
                return conversation
        return None

    async def list_conversations_for(self, user_id: str) -> list[Conversation]:
        return [c for c in self._conversations.values() if c.includes(user_id)]

    async def fetch_conversation_messages(
        self,
        conversation_id: str,
        since: datetime,
        limit: int = 100,
        message_type: str | None = None,
    ) -> list[Message]:
        messages = [
            m
            for m in self._messages.get(conversation_id, [])
            if not m.is_deleted
            and m.created_at >= since
            and (message_type is None or m.type == message_type)
        ]
        messages.sort(key=lambda m: (m.created_at, m.id))
        return messages[:limit]
