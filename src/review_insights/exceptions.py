"""Unified exception hierarchy for review-insights."""


class ReviewInsightsError(Exception):
    """Base exception for all review-insights errors."""


class ConfigurationError(ReviewInsightsError):
    """Missing credential or invalid setting. Never recovered locally."""


# Message store
class MessageStoreError(ReviewInsightsError):
    """Base exception for message store operations."""


class MessageStoreReadError(MessageStoreError):
    """Failed to read conversations or messages from the store."""


# Completions
class CompletionError(ReviewInsightsError):
    """A call to the completion endpoint failed."""


class ImageAnalysisError(CompletionError):
    """Failed to analyze a single image message."""


class ResponseParseError(ReviewInsightsError):
    """Model output did not contain a decodable JSON object."""
