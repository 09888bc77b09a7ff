"""Fail-soft message lookups between two users."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from review_insights.messages.base import BaseMessageStore
from review_insights.messages.models import Conversation, Message

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100

DIAGNOSTIC_WINDOWS = (
    ("24 hours", timedelta(hours=24)),
    ("7 days", timedelta(days=7)),
    ("30 days", timedelta(days=30)),
    ("all time", timedelta(days=365)),
)


def _sort_key(message: Message) -> tuple:
    return (message.created_at, message.id)


class MessageStoreAccess:
    """Resolves the conversations two users share and reads their messages.

    Lookup failures are logged and treated as "no prior interaction": every
    public method returns an empty result instead of raising.
    """

    def __init__(self, store: BaseMessageStore):
        self.store = store

    async def _shared_conversations(self, user_a: str, user_b: str) -> list[Conversation]:
        direct = await self.store.get_direct_conversation(user_a, user_b)
        if direct is not None:
            logger.debug(f"Direct conversation {direct.id} between {user_a} and {user_b}")
            return [direct]

        shared = [
            c for c in await self.store.list_conversations_for(user_a) if c.includes(user_b)
        ]
        logger.debug(f"No direct conversation, {len(shared)} shared conversations found")
        return shared

    async def fetch_messages_since(
        self,
        user_a: str,
        user_b: str,
        since: datetime,
        limit: int = DEFAULT_LIMIT,
        message_type: str | None = None,
    ) -> list[Message]:
        """Messages exchanged by the two users since ``since``, oldest first.

        Messages from any third party in a shared group conversation are
        dropped, then the merged list is truncated to ``limit``.
        """
        try:
            conversations = await self._shared_conversations(user_a, user_b)
            merged: list[Message] = []
            for conversation in conversations:
                merged.extend(
                    await self.store.fetch_conversation_messages(
                        conversation.id, since, limit, message_type
                    )
                )
        except Exception as e:
            logger.warning(f"Message lookup failed for {user_a}/{user_b}: {e}")
            return []

        pair = {user_a, user_b}
        messages = sorted((m for m in merged if m.sender_id in pair), key=_sort_key)
        return messages[:limit]

    async def fetch_messages_by_type_since(
        self,
        user_a: str,
        user_b: str,
        message_type: str,
        since: datetime,
        limit: int = 50,
    ) -> list[Message]:
        return await self.fetch_messages_since(
            user_a, user_b, since, limit=limit, message_type=message_type
        )

    async def diagnose(self, user_a: str, user_b: str, now: datetime | None = None) -> dict:
        """Summarize what the store can see for this pair."""
        now = now or datetime.now(timezone.utc)
        try:
            direct = await self.store.get_direct_conversation(user_a, user_b)
            user_a_conversations = await self.store.list_conversations_for(user_a)
        except Exception as e:
            logger.warning(f"Diagnosis failed for {user_a}/{user_b}: {e}")
            return {"error": str(e), "timestamp": now.isoformat()}

        shared = [c for c in user_a_conversations if c.includes(user_b)]
        counts = {}
        for label, window in DIAGNOSTIC_WINDOWS:
            messages = await self.fetch_messages_since(user_a, user_b, now - window)
            counts[label] = len(messages)

        report = {
            "has_direct_conversation": direct is not None,
            "direct_conversation_id": direct.id if direct else None,
            "user_a_total_conversations": len(user_a_conversations),
            "shared_conversation_count": len(shared),
            "shared_conversation_ids": [c.id for c in shared],
            "message_counts": counts,
            "timestamp": now.isoformat(),
        }
        logger.debug(f"Diagnosis for {user_a}/{user_b}: {report}")
        return report
