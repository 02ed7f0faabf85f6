"""Tests for application environment config."""

import pytest
from pydantic import ValidationError

from fliplive.app_config import AppEnvironConfig, get_app_environ_config


class TestAppEnvironConfig:
    def test_defaults(self):
        cfg = AppEnvironConfig()

        assert cfg.GHOST_TIMEOUT_MINUTES == 15
        assert cfg.GHOST_CLEANUP_THRESHOLD_MINUTES == 20
        assert cfg.GHOST_REAPER_CRON == "*/5 * * * *"
        assert cfg.LIVE_DEFAULT_CHAIRS == 6
        assert cfg.LIVE_MAX_CHAIRS == 9
        assert cfg.CALL_TTL_SECONDS == 120

    def test_singleton(self):
        assert get_app_environ_config() is get_app_environ_config()

    def test_cleanup_must_come_after_ghost_timeout(self):
        with pytest.raises(ValidationError):
            AppEnvironConfig(GHOST_TIMEOUT_MINUTES=20, GHOST_CLEANUP_THRESHOLD_MINUTES=20)

    def test_default_chairs_within_max(self):
        with pytest.raises(ValidationError):
            AppEnvironConfig(LIVE_DEFAULT_CHAIRS=12, LIVE_MAX_CHAIRS=9)

    def test_reaper_paging_must_be_positive(self):
        with pytest.raises(ValidationError):
            AppEnvironConfig(GHOST_REAPER_PAGE_SIZE=0)
