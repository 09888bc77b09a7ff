"""Review suggestion models, prompts, parsing and generation."""

from review_insights.review.generator import ReviewSuggestionGenerator
from review_insights.review.models import AiReviewSuggestion, default_suggestion
from review_insights.review.parser import (
    coerce_rating,
    parse_review_response,
    truncate_comment,
)

__all__ = [
    "AiReviewSuggestion",
    "ReviewSuggestionGenerator",
    "coerce_rating",
    "default_suggestion",
    "parse_review_response",
    "truncate_comment",
]
