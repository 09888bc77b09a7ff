"""Message models and store access."""

from review_insights.messages.access import MessageStoreAccess
from review_insights.messages.base import BaseMessageStore
from review_insights.messages.memory import InMemoryMessageStore
from review_insights.messages.models import (
    MESSAGE_TYPES,
    Conversation,
    Message,
    UserProfile,
)
from review_insights.messages.sqlite import SQLiteMessageStore

__all__ = [
    "MESSAGE_TYPES",
    "BaseMessageStore",
    "Conversation",
    "InMemoryMessageStore",
    "Message",
    "MessageStoreAccess",
    "SQLiteMessageStore",
    "UserProfile",
]
