"""Data models for conversation analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


@dataclass
class ConversationChunk:
    """A bounded, time-contiguous slice of a conversation."""

    start_time: datetime
    end_time: datetime
    message_count: int
    reviewer_message_count: int
    target_message_count: int
    total_word_count: int
    response_ratio: float  # target share of the chunk
    topics: list[str]
    rendered_text: str
    sentiment: str  # "positive", "negative" or "neutral"
    urgency_level: str  # "low", "medium" or "high"


@dataclass(frozen=True)
class ImageAnalysis:
    """Structured description of one image message."""

    message_id: str
    sender_id: str
    timestamp: datetime
    image_url: str
    description: str
    observations: str = ""
    tags: tuple[str, ...] = ()
    quality_score: float = 0.0  # 0-10
    relevance_score: float = 0.0  # 0-10
    degraded: bool = False  # True when produced by the fail-soft path


@dataclass
class ConversationStats:
    total_messages: int = 0
    reviewer_message_count: int = 0
    target_message_count: int = 0
    average_response_time_minutes: float = 0.0
    image_count: int = 0
    video_count: int = 0
    last_message_time: datetime | None = None
    conversation_span: timedelta = timedelta(0)


@dataclass
class CommunicationPatterns:
    average_response_time_minutes: float = 0.0
    response_consistency: float = 0.0  # 0-1, higher = steadier cadence
    initiation_ratio: float = 0.0  # reviewer share of all messages
    most_active_hour: int = 0
    communication_frequency: float = 0.0  # messages per hour
    longest_gap_minutes: float = 0.0


@dataclass
class ConversationAnalysis:
    """The aggregate report handed to the review generator."""

    chunks: list[ConversationChunk] = field(default_factory=list)
    image_analyses: list[ImageAnalysis] = field(default_factory=list)
    stats: ConversationStats = field(default_factory=ConversationStats)
    patterns: CommunicationPatterns = field(default_factory=CommunicationPatterns)
    key_insights: list[str] = field(default_factory=list)
    analyzed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def empty(cls) -> ConversationAnalysis:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.chunks and not self.image_analyses

    def to_prompt_summary(self) -> str:
        """Render the report as a prompt-ready text block."""
        lines = [
            "=== CONVERSATION ANALYSIS SUMMARY ===",
            f"Analysis Date: {self.analyzed_at.isoformat(timespec='seconds')}",
            f"Total Message Chunks: {len(self.chunks)}",
            f"Total Images Analyzed: {len(self.image_analyses)}",
            "",
            "STATISTICS:",
            f"- Total Messages: {self.stats.total_messages}",
            f"- Reviewer Messages: {self.stats.reviewer_message_count}",
            f"- Target Messages: {self.stats.target_message_count}",
            f"- Average Response Time: {self.stats.average_response_time_minutes:.1f} minutes",
            f"- Response Consistency: {self.patterns.response_consistency:.2f}",
            f"- Communication Frequency: {self.patterns.communication_frequency:.1f} messages/hour",
            f"- Longest Gap: {self.patterns.longest_gap_minutes:.0f} minutes",
            "",
        ]

        if self.key_insights:
            lines.append("KEY INSIGHTS:")
            lines.extend(f"- {insight}" for insight in self.key_insights)
            lines.append("")

        if self.chunks:
            lines.append("CONVERSATION CHUNKS:")
            for i, chunk in enumerate(self.chunks, 1):
                topics = ", ".join(chunk.topics) or "none"
                lines.append(
                    f"Chunk {i}: {chunk.message_count} messages, topics: {topics}, "
                    f"sentiment: {chunk.sentiment}, urgency: {chunk.urgency_level}"
                )
                lines.append(chunk.rendered_text)

        if self.image_analyses:
            lines.append("IMAGE ANALYSES:")
            for i, image in enumerate(self.image_analyses, 1):
                lines.append(f"Image {i}: {image.description}")
                if image.observations:
                    lines.append(f"Observations: {image.observations}")
                lines.append(
                    f"Quality: {image.quality_score}/10, Relevance: {image.relevance_score}/10"
                )
                lines.append("")

        return "\n".join(lines)
