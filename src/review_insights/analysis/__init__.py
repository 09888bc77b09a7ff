"""Conversation chunking, image description and pattern analysis."""

from review_insights.analysis.aggregator import ConversationAnalyzer, extract_key_insights
from review_insights.analysis.chunker import chunk_conversation
from review_insights.analysis.images import ImageDescriber
from review_insights.analysis.models import (
    CommunicationPatterns,
    ConversationAnalysis,
    ConversationChunk,
    ConversationStats,
    ImageAnalysis,
)
from review_insights.analysis.patterns import (
    analyze_communication_patterns,
    compute_conversation_stats,
)

__all__ = [
    "CommunicationPatterns",
    "ConversationAnalysis",
    "ConversationAnalyzer",
    "ConversationChunk",
    "ConversationStats",
    "ImageAnalysis",
    "ImageDescriber",
    "analyze_communication_patterns",
    "chunk_conversation",
    "compute_conversation_stats",
    "extract_key_insights",
]
