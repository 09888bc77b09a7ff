"""Abstract base class for message store backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from review_insights.messages.models import Conversation, Message


class BaseMessageStore(ABC):
    """Abstract read interface over conversations and their messages."""

    @abstractmethod
    async def get_direct_conversation(self, user_a: str, user_b: str) -> Conversation | None:
        """Return the one-to-one conversation between two users, if any."""
        ...

    @abstractmethod
    async def list_conversations_for(self, user_id: str) -> list[Conversation]:
        """All conversations the user participates in."""
        ...

    @abstractmethod
    async def fetch_conversation_messages(
        self,
        conversation_id: str,
        since: datetime,
        limit: int = 100,
        message_type: str | None = None,
    ) -> list[Message]:
        """Non-deleted messages with ``created_at >= since``, oldest first."""
        ...
