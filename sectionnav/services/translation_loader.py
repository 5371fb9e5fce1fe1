"""
Translation Loader - lazy, cached, per-section translations.

The base locale unit is always loaded first and the requested locale is
merged over it. Translations are best-effort: every failure degrades to the
base mapping or to an empty mapping, never to an exception.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Tuple, Union

import structlog

from .cache_service import CacheService

logger = structlog.get_logger(__name__)

TRANSLATION_CACHE_KEY_PREFIX = "translation_"
DEFAULT_TRANSLATION_TTL_MS = 60 * 60 * 1000
SECTION_DIRECTORY_PREFIX = "section-"

Translations = Dict[str, Any]
TranslationKey = Tuple[str, str]


class TranslationLoadError(Exception):
    """Raised when a translation unit cannot be read."""


class TranslationSource(Protocol):
    def exists(self, section_name: str, locale_code: str) -> Awaitable[bool]: ...

    def load(self, section_name: str, locale_code: str) -> Awaitable[Translations]: ...


class DirectoryTranslationSource:
    """Translation units stored as ``section-<name>/<locale>.json`` files.

    The directory is listed once when the source is created; units added
    afterwards are not seen until ``refresh`` is called.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()
        self._index: Dict[Tuple[str, str], Path] = self._build_index()

    def _build_index(self) -> Dict[Tuple[str, str], Path]:
        index: Dict[Tuple[str, str], Path] = {}
        if not self.directory.is_dir():
            logger.warning("Translation directory not found", directory=str(self.directory))
            return index

        for section_dir in sorted(self.directory.glob(f"{SECTION_DIRECTORY_PREFIX}*")):
            if not section_dir.is_dir():
                continue
            section_name = section_dir.name[len(SECTION_DIRECTORY_PREFIX):]
            for unit_path in sorted(section_dir.glob("*.json")):
                index[(section_name, unit_path.stem)] = unit_path

        logger.info("Translation units indexed", unit_count=len(index))
        return index

    def refresh(self) -> None:
        self._index = self._build_index()

    def units(self) -> List[Tuple[str, str]]:
        return sorted(self._index)

    async def exists(self, section_name: str, locale_code: str) -> bool:
        return (section_name, locale_code) in self._index

    async def load(self, section_name: str, locale_code: str) -> Translations:
        unit_path = self._index.get((section_name, locale_code))
        if unit_path is None:
            raise TranslationLoadError(
                f"No translation unit for {SECTION_DIRECTORY_PREFIX}{section_name}/{locale_code}"
            )
        try:
            data = json.loads(unit_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise TranslationLoadError(f"Cannot read {unit_path}: {e}")
        if not isinstance(data, dict):
            raise TranslationLoadError(f"Translation unit {unit_path} is not an object")
        return data


class TranslationLoader:
    """Loads and caches merged translations keyed by (section, locale).

    Concurrent requests for the same key share one load: the first caller
    loads, later callers wait on its result for at most ``wait_timeout``
    seconds and get an empty mapping if it does not arrive in time.
    """

    def __init__(
        self,
        source: TranslationSource,
        cache: CacheService,
        *,
        base_locale: str = "en",
        cache_ttl_ms: int = DEFAULT_TRANSLATION_TTL_MS,
        wait_timeout: float = 5.0,
    ):
        self._source = source
        self._cache = cache
        self.base_locale = base_locale
        self._cache_ttl_ms = cache_ttl_ms
        self._wait_timeout = wait_timeout
        self._in_flight: Dict[TranslationKey, "asyncio.Future[Translations]"] = {}
        self._loaded: Dict[TranslationKey, Translations] = {}

    @staticmethod
    def _cache_key(loading_key: TranslationKey) -> str:
        section_name, locale_code = loading_key
        return f"{TRANSLATION_CACHE_KEY_PREFIX}{section_name}/{locale_code}"

    async def _unit_exists(self, section_name: str, locale_code: str) -> bool:
        try:
            return bool(await self._source.exists(section_name, locale_code))
        except Exception as e:
            logger.warning(
                "Translation existence check failed",
                section=section_name,
                locale=locale_code,
                error=str(e),
            )
            return False

    async def load_translations_for_section(
        self, section_name: str, locale_code: Optional[str] = None
    ) -> Translations:
        locale_code = locale_code or self.base_locale

        if not await self._unit_exists(section_name, self.base_locale):
            logger.info(
                "Base translation unit missing, skipping",
                section=section_name,
                base_locale=self.base_locale,
            )
            return {}

        loading_key = (section_name, locale_code)
        cached = self._cache.get(self._cache_key(loading_key))
        if cached is not None:
            logger.debug("Translations served from cache", section=section_name, locale=locale_code)
            return dict(cached)

        pending = self._in_flight.get(loading_key)
        if pending is not None:
            return await self._wait_for_translation_load(loading_key, pending)

        # No await between the in-flight lookup above and this registration.
        future: "asyncio.Future[Translations]" = asyncio.get_running_loop().create_future()
        self._in_flight[loading_key] = future

        translations: Translations = {}
        try:
            translations = await self._load_merged(section_name, locale_code)
        except Exception as e:
            logger.error(
                "Failed to load translations",
                section=section_name,
                locale=locale_code,
                error=str(e),
            )
            translations = {}
        finally:
            self._in_flight.pop(loading_key, None)
            if not future.done():
                future.set_result(translations)

        self._cache.set(self._cache_key(loading_key), translations, self._cache_ttl_ms)
        self._loaded[loading_key] = translations
        logger.info(
            "Translations loaded",
            section=section_name,
            locale=locale_code,
            key_count=len(translations),
        )
        return dict(translations)

    async def _load_merged(self, section_name: str, locale_code: str) -> Translations:
        base_translations = await self._source.load(section_name, self.base_locale)
        if locale_code == self.base_locale:
            return dict(base_translations)

        if not await self._unit_exists(section_name, locale_code):
            logger.debug(
                "Locale unit missing, using base translations",
                section=section_name,
                locale=locale_code,
            )
            return dict(base_translations)

        try:
            locale_translations = await self._source.load(section_name, locale_code)
        except Exception as e:
            logger.warning(
                "Locale unit failed to load, using base translations",
                section=section_name,
                locale=locale_code,
                error=str(e),
            )
            return dict(base_translations)

        merged = dict(base_translations)
        merged.update(locale_translations)
        return merged

    async def _wait_for_translation_load(
        self, loading_key: TranslationKey, pending: "asyncio.Future[Translations]"
    ) -> Translations:
        logger.debug(
            "Waiting for in-flight translation load",
            section=loading_key[0],
            locale=loading_key[1],
        )
        try:
            result = await asyncio.wait_for(asyncio.shield(pending), timeout=self._wait_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Timed out waiting for translation load",
                section=loading_key[0],
                locale=loading_key[1],
            )
            return {}
        return dict(result)

    async def preload_translations_for_sections(
        self, section_names: List[str], locale_code: Optional[str] = None
    ) -> Dict[str, Translations]:
        results = await asyncio.gather(
            *(self.load_translations_for_section(name, locale_code) for name in section_names),
            return_exceptions=True,
        )

        translations_map: Dict[str, Translations] = {}
        failed = 0
        for name, result in zip(section_names, results):
            if isinstance(result, BaseException):
                logger.error("Section translation load failed", section=name, error=str(result))
                translations_map[name] = {}
                failed += 1
            else:
                translations_map[name] = result

        logger.info(
            "Batch translation load completed",
            total=len(section_names),
            successful=len(section_names) - failed,
            failed=failed,
        )
        return translations_map

    def are_translations_loaded_for_section(
        self, section_name: str, locale_code: Optional[str] = None
    ) -> bool:
        loading_key = (section_name, locale_code or self.base_locale)
        if loading_key not in self._loaded:
            return False
        if not self._cache.has(self._cache_key(loading_key)):
            self._loaded.pop(loading_key, None)
            return False
        return True

    def clear_translation_caches(self) -> int:
        count = len(self._loaded)
        for loading_key in self._loaded:
            self._cache.delete(self._cache_key(loading_key))
        self._loaded.clear()
        logger.info("Translation caches cleared", cleared_count=count)
        return count

    def get_translation_statistics(self) -> Dict[str, Any]:
        return {
            "loaded_count": len(self._loaded),
            "loaded_sections": sorted(self._loaded),
            "loading_in_progress": sorted(self._in_flight),
        }
