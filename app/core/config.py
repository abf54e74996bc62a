"""Locale bucket client configuration settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

logger = structlog.stdlib.get_logger().bind(component="config")

DEFAULT_LOCALE_SERVER_BASE_URL = "https://api.locales.glitchedpolygons.com"
DEFAULT_LOCALE_SERVER_TRANSLATION_ENDPOINT = "/api/v1/translations/translate"


class LocaleServerSettings(BaseSettings):
    """Remote locale server connection settings.

    Environment Variables:
        LOCALE_SERVER_BASE_URL: Base URL of the locale server
        LOCALE_SERVER_TRANSLATION_ENDPOINT: Path of the translation endpoint
        LOCALE_SERVER_USER_ID: Locale server account user id
        LOCALE_SERVER_API_KEY: Optional API key sent as the ``API-Key`` header
        LOCALE_SERVER_READ_ACCESS_PASSWORD: Optional read-access password
        LOCALE_SERVER_REQUEST_TIMEOUT_SECONDS: HTTP-level timeout (default: 30s)
    """

    BASE_URL: str = Field(
        default=DEFAULT_LOCALE_SERVER_BASE_URL, alias="LOCALE_SERVER_BASE_URL"
    )
    TRANSLATION_ENDPOINT: str = Field(
        default=DEFAULT_LOCALE_SERVER_TRANSLATION_ENDPOINT,
        alias="LOCALE_SERVER_TRANSLATION_ENDPOINT",
    )
    USER_ID: str = Field(default="", alias="LOCALE_SERVER_USER_ID")
    API_KEY: str = Field(default="", alias="LOCALE_SERVER_API_KEY")
    READ_ACCESS_PASSWORD: str = Field(
        default="", alias="LOCALE_SERVER_READ_ACCESS_PASSWORD"
    )
    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=30.0, gt=0, alias="LOCALE_SERVER_REQUEST_TIMEOUT_SECONDS"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


class RefreshSettings(BaseSettings):
    """Refresh scheduling and failure detection settings.

    Environment Variables:
        REFRESH_MIN_SECONDS_BETWEEN_REQUESTS: Staleness interval (default: 86400s)
        REFRESH_MAX_RESPONSE_TIME_MILLISECONDS: Watchdog deadline (default: 4096ms)
        REFRESH_WATCHDOG_POLL_INTERVAL_MILLISECONDS: Watchdog poll (default: 256ms)
        REFRESH_MAX_WORKERS: Worker threads per bucket (default: 4)
    """

    MIN_SECONDS_BETWEEN_REQUESTS: int = Field(
        default=86400, ge=0, alias="REFRESH_MIN_SECONDS_BETWEEN_REQUESTS"
    )
    MAX_RESPONSE_TIME_MILLISECONDS: int = Field(
        default=4096, gt=0, alias="REFRESH_MAX_RESPONSE_TIME_MILLISECONDS"
    )
    WATCHDOG_POLL_INTERVAL_MILLISECONDS: int = Field(
        default=256, gt=0, alias="REFRESH_WATCHDOG_POLL_INTERVAL_MILLISECONDS"
    )
    MAX_WORKERS: int = Field(default=4, ge=2, alias="REFRESH_MAX_WORKERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


class CacheSettings(BaseSettings):
    """Local cache and config record settings."""

    CACHE_DIRECTORY: str = Field(
        default="localization_cache", alias="LOCALIZATION_CACHE_DIRECTORY"
    )
    CONFIG_FILE_NAME: str = Field(
        default="config.json", alias="LOCALIZATION_CONFIG_FILE_NAME"
    )
    CONFIG_ID_LOCALE_INDEX: str = Field(
        default="locale_index", alias="LOCALIZATION_CONFIG_ID_LOCALE_INDEX"
    )
    CONFIG_ID_LAST_FETCH_UTC: str = Field(
        default="last_fetch_utc", alias="LOCALIZATION_CONFIG_ID_LAST_FETCH_UTC"
    )
    SAVE_CACHE_ON_SHUTDOWN: bool = Field(
        default=False, alias="LOCALIZATION_SAVE_CACHE_ON_SHUTDOWN"
    )
    RETURN_KEY_WHEN_NOT_FOUND: bool = Field(
        default=False, alias="LOCALIZATION_RETURN_KEY_WHEN_NOT_FOUND"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Locale bucket client configuration settings."""

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    locale_server: LocaleServerSettings
    refresh: RefreshSettings
    cache: CacheSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production."""
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        settings_map = {
            "locale_server": LocaleServerSettings,
            "refresh": RefreshSettings,
            "cache": CacheSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

        if not self.locale_server.USER_ID:
            logger.warning(
                "locale_server_user_id_not_configured",
                base_url=self.locale_server.BASE_URL,
            )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Create the settings instance
settings = Settings()
