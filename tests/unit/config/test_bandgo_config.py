"""Unit tests for BandgoConfig."""

import pytest

from bandgo.config import DEFAULT_BANDGO_CONFIG, BandgoConfig
from bandgo.domain.models import SystemSettings

ENV_KEYS = [
    "BANDGO_ENVIRONMENT",
    "BANDGO_REHEARSAL_GOAL",
    "BANDGO_POLL_DURATION_HOURS",
    "BANDGO_AUTO_FINALIZE_POLL",
    "BANDGO_CHAT_POLL_INTERVAL_MS",
    "BANDGO_FEED_PAGE_SIZE",
    "BANDGO_CHAT_HISTORY_LIMIT",
    "BANDGO_SCHEDULING_HORIZON_DAYS",
    "BANDGO_SNAPSHOT_PATH",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestDefaults:
    def test_defaults(self) -> None:
        config = BandgoConfig.from_environment()

        assert config == DEFAULT_BANDGO_CONFIG
        assert config.environment == "production"
        assert config.snapshot_path is None

    def test_initial_settings(self) -> None:
        config = BandgoConfig(default_rehearsal_goal=4, default_poll_duration_hours=12)

        assert config.initial_settings() == SystemSettings(
            rehearsal_goal=4, poll_duration_hours=12
        )


class TestFromEnvironment:
    def test_reads_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("BANDGO_ENVIRONMENT", "development")
        monkeypatch.setenv("BANDGO_REHEARSAL_GOAL", "5")
        monkeypatch.setenv("BANDGO_AUTO_FINALIZE_POLL", "off")
        monkeypatch.setenv("BANDGO_FEED_PAGE_SIZE", "50")
        monkeypatch.setenv("BANDGO_SNAPSHOT_PATH", "/var/lib/bandgo/state.json")

        config = BandgoConfig.from_environment()

        assert config.environment == "development"
        assert config.default_rehearsal_goal == 5
        assert config.auto_finalize_poll is False
        assert config.feed_page_size == 50
        assert config.snapshot_path == "/var/lib/bandgo/state.json"

    def test_unparseable_int_falls_back(self, monkeypatch) -> None:
        monkeypatch.setenv("BANDGO_CHAT_HISTORY_LIMIT", "lots")

        assert BandgoConfig.from_environment().chat_history_limit == 50

    @pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
    def test_truthy_booleans(self, monkeypatch, value: str) -> None:
        monkeypatch.setenv("BANDGO_AUTO_FINALIZE_POLL", value)

        assert BandgoConfig.from_environment().auto_finalize_poll is True

    def test_empty_snapshot_path_means_memory(self, monkeypatch) -> None:
        monkeypatch.setenv("BANDGO_SNAPSHOT_PATH", "")

        assert BandgoConfig.from_environment().snapshot_path is None


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"default_rehearsal_goal": 0},
            {"default_poll_duration_hours": 0},
            {"chat_poll_interval_ms": 50},
            {"feed_page_size": 0},
            {"chat_history_limit": 0},
            {"scheduling_horizon_days": 0},
            {"scheduling_horizon_days": 91},
        ],
    )
    def test_out_of_range_rejected(self, overrides: dict[str, int]) -> None:
        with pytest.raises(ValueError):
            BandgoConfig(**overrides)

    def test_invalid_environment_value_fails_fast(self, monkeypatch) -> None:
        monkeypatch.setenv("BANDGO_SCHEDULING_HORIZON_DAYS", "365")

        with pytest.raises(ValueError):
            BandgoConfig.from_environment()
