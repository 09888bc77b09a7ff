"""Conversation analysis and AI review suggestions."""

from review_insights.exceptions import (
    CompletionError,
    ConfigurationError,
    ReviewInsightsError,
)
from review_insights.pipeline import ReviewPipeline, build_pipeline
from review_insights.review import AiReviewSuggestion, ReviewSuggestionGenerator

__all__ = [
    "AiReviewSuggestion",
    "CompletionError",
    "ConfigurationError",
    "ReviewInsightsError",
    "ReviewPipeline",
    "ReviewSuggestionGenerator",
    "build_pipeline",
]
