"""Split a message history into tagged segments for model consumption."""

from __future__ import annotations

import logging
import re
from datetime import timedelta

from review_insights.analysis.models import ConversationChunk
from review_insights.messages.models import Message, UserProfile

logger = logging.getLogger(__name__)

MAX_CHUNK_SIZE = 15
MAX_TIME_GAP = timedelta(hours=3)
SLOW_REPLY_THRESHOLD = timedelta(minutes=30)

TOPIC_KEYWORDS = {
    "scheduling": ["when", "time", "schedule", "meet", "appointment", "available"],
    "walking": ["walk", "exercise", "route", "park", "leash", "run"],
    "care": ["feed", "water", "treat", "medicine", "vet", "health"],
    "behavior": ["bark", "bite", "friendly", "aggressive", "calm", "excited"],
    "payment": ["pay", "cost", "price", "money", "fee", "rate"],
    "emergency": ["urgent", "emergency", "help", "problem", "issue", "sick"],
}

POSITIVE_WORDS = ["good", "great", "excellent", "happy", "thanks", "perfect", "love"]
NEGATIVE_WORDS = ["bad", "terrible", "awful", "hate", "problem", "issue", "wrong"]

# Whole-word match so "now" does not fire on "know".
_URGENT_RE = re.compile(r"\b(urgent|emergency|asap|immediately|help|now)\b")

_CONTENT_PLACEHOLDERS = {
    "image": "[SENT IMAGE]",
    "video": "[SENT VIDEO]",
    "location": "[SHARED LOCATION]",
    "contact": "[SHARED CONTACT]",
}


def describe_content(message: Message) -> str:
    """Text body, or a bracketed marker for media messages."""
    if message.is_text:
        return message.content
    return _CONTENT_PLACEHOLDERS.get(message.type, f"[{message.type.upper()}]")


def format_message_line(message: Message, reviewer_id: str) -> str:
    label = "REVIEWER" if message.sender_id == reviewer_id else "TARGET"
    return f"[{message.created_at.strftime('%H:%M')}] {label}: {describe_content(message)}"


def _format_delay(delay: timedelta) -> str:
    minutes = int(delay.total_seconds() // 60)
    return f"{minutes // 60}h {minutes % 60}m"


def render_transcript(
    messages: list[Message],
    reviewer: UserProfile,
    target: UserProfile,
    slow_reply_threshold: timedelta = SLOW_REPLY_THRESHOLD,
) -> str:
    """Timestamped, role-labelled transcript with slow replies annotated."""
    lines = [
        "=== CONVERSATION SEGMENT ===",
        f"Timespan: {messages[0].created_at.isoformat(timespec='minutes')} "
        f"to {messages[-1].created_at.isoformat(timespec='minutes')}",
        f"Participants: {reviewer.display_name} (Reviewer) & {target.display_name} (Target)",
        "",
    ]
    previous = None
    for message in messages:
        lines.append(format_message_line(message, reviewer.uid))
        if previous is not None and previous.sender_id != message.sender_id:
            delay = message.created_at - previous.created_at
            if delay > slow_reply_threshold:
                lines.append(f"    [Response after {_format_delay(delay)}]")
        previous = message
    lines.append("=== END SEGMENT ===")
    return "\n".join(lines) + "\n"


def _text_of(messages: list[Message]) -> str:
    return " ".join(m.content for m in messages if m.is_text)


def identify_topics(messages: list[Message]) -> list[str]:
    """Categories with at least one keyword anywhere in the text messages."""
    content = _text_of(messages).lower()
    return [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(keyword in content for keyword in keywords)
    ]


def analyze_sentiment(messages: list[Message], target_id: str) -> str:
    """Compare positive and negative keyword hits in the target's own messages."""
    content = _text_of([m for m in messages if m.sender_id == target_id]).lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in content)
    negative = sum(1 for word in NEGATIVE_WORDS if word in content)
    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def assess_urgency(messages: list[Message]) -> str:
    content = _text_of(messages)
    if _URGENT_RE.search(content.lower()):
        return "high"
    shouting = any(len(word) > 3 and word.isupper() for word in content.split())
    if "!!!" in content or shouting:
        return "medium"
    return "low"


def build_chunk(
    messages: list[Message],
    reviewer: UserProfile,
    target: UserProfile,
    slow_reply_threshold: timedelta = SLOW_REPLY_THRESHOLD,
) -> ConversationChunk:
    reviewer_count = sum(1 for m in messages if m.sender_id == reviewer.uid)
    target_count = sum(1 for m in messages if m.sender_id == target.uid)
    total_words = sum(len(m.content.split()) for m in messages if m.is_text)

    return ConversationChunk(
        start_time=messages[0].created_at,
        end_time=messages[-1].created_at,
        message_count=len(messages),
        reviewer_message_count=reviewer_count,
        target_message_count=target_count,
        total_word_count=total_words,
        response_ratio=target_count / len(messages) if len(messages) > 1 else 0.0,
        topics=identify_topics(messages),
        rendered_text=render_transcript(messages, reviewer, target, slow_reply_threshold),
        sentiment=analyze_sentiment(messages, target.uid),
        urgency_level=assess_urgency(messages),
    )


def chunk_conversation(
    messages: list[Message],
    reviewer: UserProfile,
    target: UserProfile,
    max_chunk_size: int = MAX_CHUNK_SIZE,
    max_time_gap: timedelta = MAX_TIME_GAP,
    slow_reply_threshold: timedelta = SLOW_REPLY_THRESHOLD,
) -> list[ConversationChunk]:
    """Partition time-ordered messages into chunks.

    A new chunk starts when the current one holds ``max_chunk_size`` messages
    or when the gap since the previous message is strictly greater than
    ``max_time_gap``.
    """
    chunks: list[ConversationChunk] = []
    current: list[Message] = []

    for message in messages:
        if current and (
            len(current) >= max_chunk_size
            or message.created_at - current[-1].created_at > max_time_gap
        ):
            chunks.append(build_chunk(current, reviewer, target, slow_reply_threshold))
            current = []
        current.append(message)

    if current:
        chunks.append(build_chunk(current, reviewer, target, slow_reply_threshold))

    logger.debug(f"Chunked {len(messages)} messages into {len(chunks)} segments")
    return chunks
