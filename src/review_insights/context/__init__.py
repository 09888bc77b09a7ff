"""Context cache and background context builder."""

from review_insights.context.builder import ContextBuilder
from review_insights.context.cache import (
    BaseContextCache,
    ContextKey,
    ConversationContext,
    InMemoryContextCache,
)

__all__ = [
    "BaseContextCache",
    "ContextBuilder",
    "ContextKey",
    "ConversationContext",
    "InMemoryContextCache",
]
