"""Per-conversation cache of pre-computed review context."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, NamedTuple

logger = logging.getLogger(__name__)

MAX_TRACKED_IDS = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContextKey(NamedTuple):
    conversation_id: str
    reviewer_id: str
    target_id: str


@dataclass
class ConversationContext:
    """Incrementally built text context for one conversation and pair.

    ``processed_message_ids`` remembers only the most recent
    ``MAX_TRACKED_IDS`` message ids, oldest first.
    """

    key: ContextKey
    transcript: list[str] = field(default_factory=list)
    image_descriptions: list[str] = field(default_factory=list)
    processed_message_ids: deque[str] = field(default_factory=deque)
    message_count: int = 0
    reviewer_message_count: int = 0
    target_message_count: int = 0
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        ids = self.processed_message_ids
        if not isinstance(ids, deque) or ids.maxlen != MAX_TRACKED_IDS:
            self.processed_message_ids = deque(ids, maxlen=MAX_TRACKED_IDS)

    @property
    def is_empty(self) -> bool:
        return self.message_count == 0

    def snapshot(self) -> ConversationContext:
        """Copy whose containers are independent of this instance."""
        return replace(
            self,
            transcript=list(self.transcript),
            image_descriptions=list(self.image_descriptions),
            processed_message_ids=deque(self.processed_message_ids, maxlen=MAX_TRACKED_IDS),
        )

    def render(self) -> str:
        lines = [
            "=== CACHED CONVERSATION CONTEXT ===",
            f"Messages observed: {self.message_count} "
            f"(reviewer {self.reviewer_message_count}, target {self.target_message_count})",
            "",
            "Recent transcript:",
            *self.transcript,
        ]
        if self.image_descriptions:
            lines.append("")
            lines.append("Image observations:")
            lines.extend(f"- {d}" for d in self.image_descriptions)
        return "\n".join(lines)


class BaseContextCache(ABC):
    """Abstract interface for the context cache."""

    @abstractmethod
    def get(self, key: ContextKey) -> ConversationContext | None:
        """Return a snapshot of the cached context, or None."""
        ...

    @abstractmethod
    def put(self, key: ContextKey, context: ConversationContext) -> None:
        """Store a context; the last write for a key wins."""
        ...

    @abstractmethod
    def sweep(self, older_than: timedelta) -> int:
        """Evict contexts not updated within ``older_than``. Returns the count removed."""
        ...


class InMemoryContextCache(BaseContextCache):
    """Dict-backed cache. Readers always receive snapshots."""

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._entries: dict[ContextKey, ConversationContext] = {}
        self._now = clock or _utcnow

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: ContextKey) -> bool:
        return key in self._entries

    def get(self, key: ContextKey) -> ConversationContext | None:
        context = self._entries.get(key)
        return context.snapshot() if context is not None else None

    def put(self, key: ContextKey, context: ConversationContext) -> None:
        self._entries[key] = context.snapshot()

    def sweep(self, older_than: timedelta) -> int:
        cutoff = self._now() - older_than
        stale = [k for k, c in self._entries.items() if c.updated_at < cutoff]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.info(f"Evicted {len(stale)} stale conversation contexts")
        return len(stale)
