"""
Configuration management for sectionnav.
Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS


class ManifestSettings(BaseSettings):
    """Section manifest location settings."""

    url: str = "/section-manifest.json"
    base_url: str = "http://localhost:8080"
    timeout: float = 10.0

    model_config = SettingsConfigDict(env_prefix="MANIFEST_")


class LocaleSettings(BaseSettings):
    """Locale resolution settings."""

    supported: List[str] = Field(default=["en", "vi"])
    default: str = "en"
    base: str = "en"
    query_parameter: str = "locale"
    cache_key: str = "user_locale_preference"
    preference_ttl_ms: int = 90 * DAY_MS

    @field_validator("supported")
    @classmethod
    def validate_supported(cls, v):
        if not v:
            raise ValueError("At least one supported locale is required")
        return [code.lower() for code in v]

    model_config = SettingsConfigDict(env_prefix="LOCALE_")


class CacheSettings(BaseSettings):
    """TTL settings for cached preload and translation results."""

    preload_ttl_ms: int = 2 * HOUR_MS
    translation_ttl_ms: int = HOUR_MS

    model_config = SettingsConfigDict(env_prefix="CACHE_")


class GuardSettings(BaseSettings):
    """Navigation guard settings."""

    not_found_path: str = "/404"
    login_path: str = "/log-in"
    onboarding_path: str = "/sign-up/onboarding"
    dependency_fallback_path: str = "/dashboard"
    loop_window: int = Field(default=5, ge=1)
    loop_threshold: int = Field(default=3, ge=1)
    attempt_log_size: int = Field(default=50, ge=1)

    model_config = SettingsConfigDict(env_prefix="GUARD_")


class HistorySettings(BaseSettings):
    """Navigation history settings."""

    max_entries: int = Field(default=100, ge=1)

    model_config = SettingsConfigDict(env_prefix="HISTORY_")


class TranslationSettings(BaseSettings):
    """Translation loading settings."""

    directory: str = "i18n"
    wait_timeout: float = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(env_prefix="TRANSLATION_")


class PreloadSettings(BaseSettings):
    """Section asset preload settings."""

    asset_base_url: str = "http://localhost:8080"
    fetch_timeout: float = 30.0

    model_config = SettingsConfigDict(env_prefix="PRELOAD_")


class RouteSettings(BaseSettings):
    """Static route configuration settings."""

    config_path: str = "routes/routeConfig.json"

    model_config = SettingsConfigDict(env_prefix="ROUTES_")


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v):
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of {valid_formats}")
        return v.lower()

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    """Main application settings combining all configuration sections."""

    app_name: str = "sectionnav"
    app_version: str = "1.0.0"
    environment: str = "development"

    # Sub-configurations
    manifest: ManifestSettings = Field(default_factory=ManifestSettings)
    locale: LocaleSettings = Field(default_factory=LocaleSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    guards: GuardSettings = Field(default_factory=GuardSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    translations: TranslationSettings = Field(default_factory=TranslationSettings)
    preload: PreloadSettings = Field(default_factory=PreloadSettings)
    routes: RouteSettings = Field(default_factory=RouteSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        valid_envs = ["development", "staging", "production", "test"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}")
        return v.lower()

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def get_settings() -> Settings:
    """Build a fresh settings object from the current environment."""
    return Settings()
