"""Validate the model's JSON reply into an ``AiReviewSuggestion``."""

from __future__ import annotations

import logging
import math
import unicodedata

from review_insights.analysis.models import ImageAnalysis
from review_insights.completions.client import extract_json_object
from review_insights.exceptions import ResponseParseError
from review_insights.review.models import (
    DEFAULT_COMMENT,
    DEFAULT_RATING,
    AiReviewSuggestion,
)

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 400
MAX_HIGHLIGHTS = 5
ELLIPSIS = "..."
MIN_RATING = 1.0
MAX_RATING = 5.0

_ZWJ = "\u200d"


def _extends_previous(ch: str) -> bool:
    """True for code points that belong to the preceding grapheme."""
    cp = ord(ch)
    return (
        ch == _ZWJ
        or unicodedata.category(ch) in ("Mn", "Me", "Mc")
        or 0xFE00 <= cp <= 0xFE0F  # variation selectors
        or 0x1F3FB <= cp <= 0x1F3FF  # skin tone modifiers
        or 0xE0020 <= cp <= 0xE007F  # tag characters
        or 0xDC00 <= cp <= 0xDFFF  # low surrogate
        or 0x1160 <= cp <= 0x11FF  # Hangul jamo vowels and trailing consonants
        or 0xD7B0 <= cp <= 0xD7FF  # Hangul jamo extended-B
    )


_PREPEND_RANGES = (
    (0x0600, 0x0605),
    (0x06DD, 0x06DD),
    (0x070F, 0x070F),
    (0x0890, 0x0891),
    (0x08E2, 0x08E2),
    (0x0D4E, 0x0D4E),
    (0x110BD, 0x110BD),
    (0x110CD, 0x110CD),
    (0x111C2, 0x111C3),
)


def _is_prepend(ch: str) -> bool:
    """True for code points that attach to the following grapheme."""
    cp = ord(ch)
    return any(lo <= cp <= hi for lo, hi in _PREPEND_RANGES)


def _is_regional_indicator(ch: str) -> bool:
    return 0x1F1E6 <= ord(ch) <= 0x1F1FF


def _splits_flag(text: str, cut: int) -> bool:
    """True if ``cut`` falls between the two halves of a flag emoji."""
    if not _is_regional_indicator(text[cut]):
        return False
    run = 0
    i = cut - 1
    while i >= 0 and _is_regional_indicator(text[i]):
        run += 1
        i -= 1
    return run % 2 == 1


def truncate_comment(text: str, limit: int = MAX_COMMENT_LENGTH) -> str:
    """Cap ``text`` at ``limit`` characters, ending in ``...`` when cut.

    The cut point moves left until it sits on a grapheme boundary. Boundaries
    follow a subset of the Unicode segmentation rules: combining marks, ZWJ
    sequences, variation selectors, skin tones, tag sequences, flags, Hangul
    jamo and Prepend characters. Rarer cases such as Indic conjuncts may still
    be split.
    """
    if len(text) <= limit:
        return text
    cut = limit - len(ELLIPSIS)
    while cut > 0 and (
        _extends_previous(text[cut])
        or text[cut - 1] == _ZWJ
        or _is_prepend(text[cut - 1])
        or _splits_flag(text, cut)
    ):
        cut -= 1
    return text[:cut].rstrip() + ELLIPSIS


def coerce_rating(value) -> float | None:
    """Clamp a model rating into [1, 5] at 0.1 granularity.

    Returns None for values that are not usable numbers.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(rating):
        return None
    return round(min(max(rating, MIN_RATING), MAX_RATING), 1)


def _string_list(value) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def parse_review_response(
    text: str,
    image_descriptions: list[str] | None = None,
    fallback_highlights: list[str] | None = None,
    detailed_image_analyses: list[ImageAnalysis] | None = None,
) -> AiReviewSuggestion:
    """Build a suggestion from whatever fields of the reply are valid.

    Each field is validated on its own; an invalid or missing field gets its
    default while the others are kept.
    """
    try:
        data = extract_json_object(text)
    except ResponseParseError as e:
        logger.warning(f"Could not parse review response: {e}")
        data = {}

    rating = coerce_rating(data.get("rating"))
    if rating is None:
        if "rating" in data:
            logger.warning(f"Unusable rating in review response: {data['rating']!r}")
        rating = DEFAULT_RATING

    comment = data.get("comment")
    if not isinstance(comment, str) or not comment.strip():
        comment = DEFAULT_COMMENT

    highlights = _string_list(data.get("highlights"))
    if not highlights:
        highlights = list(fallback_highlights or [])

    reasoning = data.get("reasoning")
    if not isinstance(reasoning, str) or not reasoning.strip():
        reasoning = "Analysis completed." if data else "Basic analysis completed."

    return AiReviewSuggestion(
        suggested_rating=rating,
        suggested_comment=truncate_comment(comment.strip()),
        conversation_highlights=highlights[:MAX_HIGHLIGHTS],
        image_analysis_descriptions=list(image_descriptions or []),
        analysis_reasoning=reasoning.strip(),
        detailed_image_analyses=detailed_image_analyses,
    )
