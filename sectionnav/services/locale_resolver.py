"""
Locale Resolver - picks the active locale from a strict priority chain.

Priority order:
1. URL (``?locale=vi`` query parameter, then a leading ``/vi/...`` path segment)
2. Cached user selection
3. Browser preferred language (base subtag only)
4. Default locale
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import structlog

from ..config.settings import LocaleSettings
from .cache_service import CacheService

logger = structlog.get_logger(__name__)

LOCALE_DISPLAY_NAMES: Dict[str, str] = {
    "en": "English",
    "vi": "Tiếng Việt",
}


@dataclass
class BrowserLocation:
    """Current URL and reported language of the client, plus pushed history states."""

    href: str = "http://localhost/"
    language: Optional[str] = None
    pushed_urls: List[str] = field(default_factory=list)

    def push_state(self, url: str) -> None:
        self.pushed_urls.append(url)
        self.href = url


class LocaleResolver:
    """Resolves and persists the active locale."""

    def __init__(
        self,
        cache: CacheService,
        location: BrowserLocation,
        settings: Optional[LocaleSettings] = None,
    ):
        self.settings = settings or LocaleSettings()
        self._cache = cache
        self._location = location
        self._active_locale: Optional[str] = None

    @property
    def supported_locales(self) -> List[str]:
        return list(self.settings.supported)

    def is_locale_supported(self, locale_code: Any) -> bool:
        return isinstance(locale_code, str) and locale_code in self.settings.supported

    def get_supported_locales(self) -> List[str]:
        return self.supported_locales

    def get_default_locale(self) -> str:
        return self.settings.default

    @staticmethod
    def get_locale_display_name(locale_code: str) -> str:
        return LOCALE_DISPLAY_NAMES.get(locale_code, locale_code)

    def _locale_from_url(self) -> Optional[str]:
        try:
            url = httpx.URL(self._location.href)
        except Exception as e:
            logger.error("Error parsing URL for locale", error=str(e))
            return None

        query_locale = url.params.get(self.settings.query_parameter)
        if self.is_locale_supported(query_locale):
            return query_locale

        segments = [part for part in url.path.split("/") if part]
        if segments and self.is_locale_supported(segments[0]):
            return segments[0]

        return None

    def _locale_from_cache(self) -> Optional[str]:
        cached = self._cache.get(self.settings.cache_key)
        return cached if self.is_locale_supported(cached) else None

    def _locale_from_browser(self) -> Optional[str]:
        language = self._location.language
        if not language:
            return None

        base_language = language.split("-")[0].lower()
        if self.is_locale_supported(base_language):
            return base_language

        logger.debug("Browser language not supported", language=language)
        return None

    def resolve_active_locale(self) -> str:
        try:
            for source, resolver in (
                ("url", self._locale_from_url),
                ("cache", self._locale_from_cache),
                ("browser", self._locale_from_browser),
            ):
                locale_code = resolver()
                if locale_code:
                    logger.debug("Locale resolved", source=source, locale=locale_code)
                    self._active_locale = locale_code
                    return locale_code
        except Exception as e:
            logger.error("Error resolving locale", error=str(e))

        self._active_locale = self.settings.default
        return self.settings.default

    def get_active_locale(self) -> str:
        if not self._active_locale:
            self._active_locale = self.resolve_active_locale()
        return self._active_locale

    def set_active_locale(self, locale_code: str, *, update_url: bool = True) -> bool:
        if not self.is_locale_supported(locale_code):
            logger.warning(
                "Unsupported locale rejected",
                locale=locale_code,
                supported=self.supported_locales,
            )
            return False

        self._active_locale = locale_code
        self._cache.set(
            self.settings.cache_key, locale_code, self.settings.preference_ttl_ms
        )
        logger.info("Active locale set", locale=locale_code, update_url=update_url)

        if update_url:
            self._update_url_with_locale(locale_code)
        return True

    def _update_url_with_locale(self, locale_code: str) -> None:
        try:
            url = httpx.URL(self._location.href).copy_set_param(
                self.settings.query_parameter, locale_code
            )
            self._location.push_state(str(url))
        except Exception as e:
            logger.error("Failed to update URL with locale", locale=locale_code, error=str(e))

    async def switch_to_locale(self, locale_code: str) -> bool:
        previous = self._active_locale
        switched = self.set_active_locale(locale_code)
        if switched:
            logger.info("Locale switched", old_locale=previous, new_locale=locale_code)
        return switched

    def reset_locale_to_default(self) -> bool:
        return self.set_active_locale(self.settings.default)

    def get_locale_preference_order(self) -> List[Dict[str, Any]]:
        return [
            {"source": "url", "value": self._locale_from_url(), "priority": 1},
            {"source": "cache", "value": self._cache.get(self.settings.cache_key), "priority": 2},
            {"source": "browser", "value": self._locale_from_browser(), "priority": 3},
            {"source": "default", "value": self.settings.default, "priority": 4},
        ]
