"""Process configuration for the bandgo core.

Environment Variables:
- BANDGO_ENVIRONMENT: "production" (JSON logs) or "development" (console)
- BANDGO_REHEARSAL_GOAL: Default approved rehearsals to unlock performing (default: 3)
- BANDGO_POLL_DURATION_HOURS: Default rehearsal poll lifetime (default: 24)
- BANDGO_AUTO_FINALIZE_POLL: "true"/"false" (default: true)
- BANDGO_CHAT_POLL_INTERVAL_MS: Chat polling fallback interval (default: 2000)
- BANDGO_FEED_PAGE_SIZE: Default posts per feed page (default: 20)
- BANDGO_CHAT_HISTORY_LIMIT: Default chat messages returned (default: 50)
- BANDGO_SCHEDULING_HORIZON_DAYS: Days ahead scanned for suggestions (default: 14)
- BANDGO_SNAPSHOT_PATH: JSON snapshot file; unset keeps state in memory only

The rehearsal goal, poll duration and auto-finalize values only seed
SystemSettings on first access. After that the persisted settings record
is authoritative and changes go through the settings manager.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from bandgo.domain.models.system_settings import SystemSettings


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class BandgoConfig:
    """Configuration for the bandgo core.

    Attributes:
        environment: Selects log rendering (production = JSON).
        default_rehearsal_goal: Seed for SystemSettings.rehearsal_goal.
        default_poll_duration_hours: Seed for SystemSettings.poll_duration_hours.
        auto_finalize_poll: Seed for SystemSettings.auto_finalize_poll.
        chat_poll_interval_ms: Interval for the chat polling fallback.
        feed_page_size: Default page size for the feed.
        chat_history_limit: Default number of chat messages returned.
        scheduling_horizon_days: How far ahead scheduling suggestions look.
        snapshot_path: JSON snapshot location, or None for memory only.
    """

    environment: str = "production"
    default_rehearsal_goal: int = 3
    default_poll_duration_hours: int = 24
    auto_finalize_poll: bool = True
    chat_poll_interval_ms: int = 2000
    feed_page_size: int = 20
    chat_history_limit: int = 50
    scheduling_horizon_days: int = 14
    snapshot_path: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.default_rehearsal_goal < 1:
            raise ValueError(
                f"default_rehearsal_goal must be at least 1, got {self.default_rehearsal_goal}"
            )
        if self.default_poll_duration_hours < 1:
            raise ValueError(
                "default_poll_duration_hours must be at least 1, "
                f"got {self.default_poll_duration_hours}"
            )
        if self.chat_poll_interval_ms < 100:
            raise ValueError(
                f"chat_poll_interval_ms must be at least 100, got {self.chat_poll_interval_ms}"
            )
        if self.feed_page_size < 1:
            raise ValueError(f"feed_page_size must be positive, got {self.feed_page_size}")
        if self.chat_history_limit < 1:
            raise ValueError(
                f"chat_history_limit must be positive, got {self.chat_history_limit}"
            )
        if not 1 <= self.scheduling_horizon_days <= 90:
            raise ValueError(
                "scheduling_horizon_days must be between 1 and 90, "
                f"got {self.scheduling_horizon_days}"
            )

    @classmethod
    def from_environment(cls) -> BandgoConfig:
        """Create config from BANDGO_* environment variables with defaults."""
        return cls(
            environment=os.environ.get("BANDGO_ENVIRONMENT", "production"),
            default_rehearsal_goal=_get_int_env("BANDGO_REHEARSAL_GOAL", 3),
            default_poll_duration_hours=_get_int_env("BANDGO_POLL_DURATION_HOURS", 24),
            auto_finalize_poll=_get_bool_env("BANDGO_AUTO_FINALIZE_POLL", True),
            chat_poll_interval_ms=_get_int_env("BANDGO_CHAT_POLL_INTERVAL_MS", 2000),
            feed_page_size=_get_int_env("BANDGO_FEED_PAGE_SIZE", 20),
            chat_history_limit=_get_int_env("BANDGO_CHAT_HISTORY_LIMIT", 50),
            scheduling_horizon_days=_get_int_env("BANDGO_SCHEDULING_HORIZON_DAYS", 14),
            snapshot_path=os.environ.get("BANDGO_SNAPSHOT_PATH") or None,
        )

    def initial_settings(self) -> SystemSettings:
        """SystemSettings used when none has been persisted yet."""
        return SystemSettings(
            rehearsal_goal=self.default_rehearsal_goal,
            poll_duration_hours=self.default_poll_duration_hours,
            auto_finalize_poll=self.auto_finalize_poll,
        )


# Default configuration instance
DEFAULT_BANDGO_CONFIG = BandgoConfig()
