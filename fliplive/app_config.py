from pydantic import BaseModel, model_validator

from fliplive.shared.config import config


def _int_setting(key: str, default: int) -> int:
    return int((config.get(key) or "").strip() or default)


class AppEnvironConfig(BaseModel):
    DEBUG: bool = config.get_bool("DEBUG")

    # Live sessions
    LIVE_MAX_CHAIRS: int = _int_setting("LIVE_MAX_CHAIRS", 9)
    LIVE_DEFAULT_CHAIRS: int = _int_setting("LIVE_DEFAULT_CHAIRS", 6)

    # Ghost reaper
    GHOST_TIMEOUT_MINUTES: int = _int_setting("GHOST_TIMEOUT_MINUTES", 15)
    GHOST_CLEANUP_THRESHOLD_MINUTES: int = _int_setting("GHOST_CLEANUP_THRESHOLD_MINUTES", 20)
    GHOST_REAPER_CRON: str = (config.get("GHOST_REAPER_CRON") or "").strip() or "*/5 * * * *"
    GHOST_REAPER_PAGE_SIZE: int = _int_setting("GHOST_REAPER_PAGE_SIZE", 200)
    GHOST_REAPER_MAX_PAGES: int = _int_setting("GHOST_REAPER_MAX_PAGES", 50)

    # Call signaling registry
    CALL_TTL_SECONDS: int = _int_setting("CALL_TTL_SECONDS", 120)

    # Identity verification
    AUTH_JWT_SECRET: str | None = (config.get("AUTH_JWT_SECRET") or "").strip() or None
    AUTH_JWT_ALGORITHM: str = (config.get("AUTH_JWT_ALGORITHM") or "").strip() or "HS256"

    # Real-time fan-out
    EVENT_CHANNEL_PREFIX: str = (config.get("EVENT_CHANNEL_PREFIX") or "").strip() or "fliplive:events"

    # Payment verification provider
    PAYMENT_VERIFY_URL: str | None = (config.get("PAYMENT_VERIFY_URL") or "").strip() or None
    PAYMENT_VERIFY_API_KEY: str | None = (config.get("PAYMENT_VERIFY_API_KEY") or "").strip() or None

    @model_validator(mode="after")
    def _check_ghost_thresholds(self) -> "AppEnvironConfig":
        if self.GHOST_CLEANUP_THRESHOLD_MINUTES <= self.GHOST_TIMEOUT_MINUTES:
            raise ValueError(
                "GHOST_CLEANUP_THRESHOLD_MINUTES must be greater than GHOST_TIMEOUT_MINUTES "
                f"({self.GHOST_CLEANUP_THRESHOLD_MINUTES} <= {self.GHOST_TIMEOUT_MINUTES})"
            )
        if not 1 <= self.LIVE_DEFAULT_CHAIRS <= self.LIVE_MAX_CHAIRS:
            raise ValueError("LIVE_DEFAULT_CHAIRS must be between 1 and LIVE_MAX_CHAIRS")
        if self.GHOST_REAPER_PAGE_SIZE < 1 or self.GHOST_REAPER_MAX_PAGES < 1:
            raise ValueError("GHOST_REAPER_PAGE_SIZE and GHOST_REAPER_MAX_PAGES must be positive")
        return self


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
