"""Analysis tunables with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta

from review_insights.exceptions import ConfigurationError

ENV_PREFIX = "REVIEW_INSIGHTS_"


def _default_windows() -> tuple[timedelta, ...]:
    return (
        timedelta(hours=48),
        timedelta(days=7),
        timedelta(days=30),
        timedelta(days=90),
    )


@dataclass
class AnalysisSettings:
    """Limits and thresholds for one analysis run."""

    lookback_windows: tuple[timedelta, ...] = field(default_factory=_default_windows)
    min_messages: int = 3  # stop widening once a window yields this many
    message_limit: int = 100
    max_chunk_size: int = 15
    max_time_gap: timedelta = timedelta(hours=3)
    slow_reply_threshold: timedelta = timedelta(minutes=30)
    max_images: int = 10
    image_concurrency: int = 1  # 1 = sequential vision calls
    context_ttl: timedelta = timedelta(hours=24)
    max_context_lines: int = 50
    request_timeout: float = 30.0

    def __post_init__(self):
        if not self.lookback_windows:
            raise ConfigurationError("At least one lookback window is required.")
        if list(self.lookback_windows) != sorted(self.lookback_windows):
            raise ConfigurationError("Lookback windows must be in increasing order.")
        for name in ("min_messages", "message_limit", "max_chunk_size", "image_concurrency"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1.")
        if self.max_images < 0:
            raise ConfigurationError("max_images must not be negative.")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive.")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from e


def _env_windows(default: tuple[timedelta, ...]) -> tuple[timedelta, ...]:
    """Parse ``REVIEW_INSIGHTS_LOOKBACK_HOURS`` (e.g. ``48,168,720,2160``)."""
    raw = os.environ.get(ENV_PREFIX + "LOOKBACK_HOURS")
    if raw is None or raw.strip() == "":
        return default
    try:
        return tuple(timedelta(hours=float(part)) for part in raw.split(",") if part.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_PREFIX}LOOKBACK_HOURS must be comma-separated hours, got {raw!r}"
        ) from e


def load_settings() -> AnalysisSettings:
    """Build settings from defaults plus ``REVIEW_INSIGHTS_*`` overrides."""
    defaults = AnalysisSettings()
    return AnalysisSettings(
        lookback_windows=_env_windows(defaults.lookback_windows),
        min_messages=_env_int("MIN_MESSAGES", defaults.min_messages),
        message_limit=_env_int("MESSAGE_LIMIT", defaults.message_limit),
        max_chunk_size=_env_int("MAX_CHUNK_SIZE", defaults.max_chunk_size),
        max_time_gap=timedelta(
            minutes=_env_float("MAX_GAP_MINUTES", defaults.max_time_gap.total_seconds() / 60)
        ),
        slow_reply_threshold=defaults.slow_reply_threshold,
        max_images=_env_int("MAX_IMAGES", defaults.max_images),
        image_concurrency=_env_int("IMAGE_CONCURRENCY", defaults.image_concurrency),
        context_ttl=timedelta(
            hours=_env_float("CONTEXT_TTL_HOURS", defaults.context_ttl.total_seconds() / 3600)
        ),
        max_context_lines=_env_int("MAX_CONTEXT_LINES", defaults.max_context_lines),
        request_timeout=_env_float("REQUEST_TIMEOUT", defaults.request_timeout),
    )
