"""Data models for review suggestions."""

from __future__ import annotations

from dataclasses import dataclass, field

from review_insights.analysis.models import ImageAnalysis

DEFAULT_RATING = 3.0
DEFAULT_COMMENT = "Had a good experience overall."
DEFAULT_REASONING = "Unable to analyze conversation data."


@dataclass(frozen=True)
class AiReviewSuggestion:
    """A suggested rating and comment the reviewer may edit or discard."""

    suggested_rating: float  # 1.0-5.0, one decimal
    suggested_comment: str  # at most 400 characters
    conversation_highlights: list[str] = field(default_factory=list)
    image_analysis_descriptions: list[str] = field(default_factory=list)
    analysis_reasoning: str = ""
    detailed_image_analyses: list[ImageAnalysis] | None = None


def default_suggestion(reasoning: str = DEFAULT_REASONING) -> AiReviewSuggestion:
    """The canonical neutral suggestion returned whenever generation fails."""
    return AiReviewSuggestion(
        suggested_rating=DEFAULT_RATING,
        suggested_comment=DEFAULT_COMMENT,
        analysis_reasoning=reasoning,
    )
