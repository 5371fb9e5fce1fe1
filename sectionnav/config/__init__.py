"""Configuration package for sectionnav."""

from .settings import (
    CacheSettings,
    GuardSettings,
    HistorySettings,
    LocaleSettings,
    LoggingSettings,
    ManifestSettings,
    PreloadSettings,
    RouteSettings,
    Settings,
    TranslationSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "ManifestSettings",
    "LocaleSettings",
    "CacheSettings",
    "GuardSettings",
    "HistorySettings",
    "TranslationSettings",
    "PreloadSettings",
    "RouteSettings",
    "LoggingSettings",
]
