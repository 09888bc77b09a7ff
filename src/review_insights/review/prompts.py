"""Role-aware prompt templates for review generation."""

from __future__ import annotations

from review_insights.analysis.models import ConversationAnalysis
from review_insights.messages.models import UserProfile

OUTPUT_FORMAT = """Output format:
{
  "rating": 3.5,
  "comment": "Detailed review comment here...",
  "highlights": ["key observation 1", "key observation 2"],
  "reasoning": "Brief explanation of the rating"
}"""


def _roles(reviewer: UserProfile, target: UserProfile) -> list[str]:
    review_type = "Owner reviewing Walker" if reviewer.is_owner else "Walker reviewing Owner"
    return [
        f"- Reviewer: {reviewer.role_text} ({reviewer.display_name})",
        f"- Target: {target.role_text} ({target.display_name})",
        f"- Review Type: {review_type}",
    ]


def _focus(target: UserProfile) -> str:
    return "care quality" if target.is_walker else "cooperation"


def build_full_prompt(
    reviewer: UserProfile,
    target: UserProfile,
    analysis: ConversationAnalysis,
) -> str:
    lines = [
        f"You are helping to generate a balanced review for a {target.role_text} "
        "based on recent interactions.",
        "",
        "Context:",
        *_roles(reviewer, target),
        "",
        analysis.to_prompt_summary(),
        "",
        "Instructions:",
        "1. Generate a balanced review (not overly positive or negative)",
        f"2. Focus on communication, reliability, and {_focus(target)}",
        "3. Mention specific observations from the conversation and images",
        "4. Provide a rating from 1-5 (one decimal allowed, e.g. 3.5)",
        "5. Keep the comment under 400 characters",
        "6. Be fair and objective",
        "",
        OUTPUT_FORMAT,
    ]
    return "\n".join(lines)


def build_fast_prompt(reviewer: UserProfile, target: UserProfile, context_text: str) -> str:
    lines = [
        f"Write a short, balanced review of a {target.role_text}.",
        *_roles(reviewer, target),
        "",
        context_text,
        "",
        f"Focus on communication, reliability, and {_focus(target)}. "
        "Rating 1-5 (one decimal allowed). Comment under 400 characters.",
        "",
        OUTPUT_FORMAT,
    ]
    return "\n".join(lines)
