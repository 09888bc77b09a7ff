"""Data models for the messages module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

MESSAGE_TYPES = ("text", "image", "video", "location", "contact", "other")

ROLE_OWNER = "owner"
ROLE_WALKER = "walker"


@dataclass(frozen=True)
class Message:
    """A single chat message. Immutable once created."""

    id: str
    conversation_id: str
    sender_id: str
    type: str  # one of MESSAGE_TYPES
    content: str  # text body or media URL
    created_at: datetime
    is_deleted: bool = False

    @property
    def is_text(self) -> bool:
        return self.type == "text"

    @property
    def is_image(self) -> bool:
        return self.type == "image"


@dataclass
class Conversation:
    """A chat between two or more users."""

    id: str
    participant_ids: list[str] = field(default_factory=list)
    is_direct: bool = True

    def includes(self, user_id: str) -> bool:
        return user_id in self.participant_ids


@dataclass(frozen=True)
class UserProfile:
    """The slice of a user profile used for prompt personalization."""

    uid: str
    display_name: str
    role: str = ROLE_OWNER  # "owner" or "walker"

    @property
    def is_walker(self) -> bool:
        return self.role == ROLE_WALKER

    @property
    def is_owner(self) -> bool:
        return self.role != ROLE_WALKER

    @property
    def role_text(self) -> str:
        return "dog walker" if self.is_walker else "dog owner"


def normalize_message_type(value: str | None) -> str:
    """Map unknown or missing type names to ``"other"``."""
    value = (value or "").lower()
    return value if value in MESSAGE_TYPES else "other"
