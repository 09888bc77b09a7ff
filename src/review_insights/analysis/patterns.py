"""Aggregate statistics over a time-ordered message sequence."""

from __future__ import annotations

import math
from collections import Counter

from review_insights.analysis.models import CommunicationPatterns, ConversationStats
from review_insights.messages.models import Message


def response_times(messages: list[Message]) -> list[float]:
    """Minutes between adjacent messages whose senders differ."""
    return [
        (nxt.created_at - cur.created_at).total_seconds() / 60
        for cur, nxt in zip(messages, messages[1:])
        if cur.sender_id != nxt.sender_id
    ]


def response_consistency(times: list[float]) -> float:
    """``1 - clamp(stddev / (mean + 1), 0, 1)``; 0.0 when there is nothing to measure."""
    if not times:
        return 0.0
    mean = sum(times) / len(times)
    variance = sum((t - mean) ** 2 for t in times) / len(times)
    ratio = math.sqrt(variance) / (mean + 1)
    return 1.0 - min(max(ratio, 0.0), 1.0)


def most_active_hour(messages: list[Message]) -> int:
    """Mode of message hour-of-day; ties go to the hour seen first."""
    if not messages:
        return 0
    return Counter(m.created_at.hour for m in messages).most_common(1)[0][0]


def analyze_communication_patterns(messages: list[Message], reviewer_id: str) -> CommunicationPatterns:
    """Cadence statistics; ``initiation_ratio`` is the reviewer's share of messages."""
    if len(messages) < 2:
        return CommunicationPatterns()

    times = response_times(messages)
    elapsed_hours = (messages[-1].created_at - messages[0].created_at).total_seconds() / 3600
    reviewer_count = sum(1 for m in messages if m.sender_id == reviewer_id)

    return CommunicationPatterns(
        average_response_time_minutes=sum(times) / len(times) if times else 0.0,
        response_consistency=response_consistency(times),
        initiation_ratio=reviewer_count / len(messages),
        most_active_hour=most_active_hour(messages),
        communication_frequency=len(messages) / (elapsed_hours + 1),
        longest_gap_minutes=max(times) if times else 0.0,
    )


def compute_conversation_stats(
    messages: list[Message],
    reviewer_id: str,
    target_id: str,
) -> ConversationStats:
    if not messages:
        return ConversationStats()

    times = response_times(messages)
    return ConversationStats(
        total_messages=len(messages),
        reviewer_message_count=sum(1 for m in messages if m.sender_id == reviewer_id),
        target_message_count=sum(1 for m in messages if m.sender_id == target_id),
        average_response_time_minutes=sum(times) / len(times) if times else 0.0,
        image_count=sum(1 for m in messages if m.type == "image"),
        video_count=sum(1 for m in messages if m.type == "video"),
        last_message_time=messages[-1].created_at,
        conversation_span=messages[-1].created_at - messages[0].created_at,
    )
