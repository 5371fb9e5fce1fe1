"""Composition root: builds one wired set of services per process."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence

import structlog

from .config.settings import Settings, get_settings
from .services.cache_service import CacheService
from .services.guard_chain import GuardChain
from .services.locale_resolver import BrowserLocation, LocaleResolver
from .services.manifest_loader import HttpManifestFetcher, ManifestFetcher, ManifestLoader
from .services.navigation_history import NavigationHistory
from .services.navigation_service import NavigationService
from .services.route_config_loader import RouteConfigLoader
from .services.route_resolver import RouteResolver
from .services.section_preloader import (
    AssetFetcher,
    HttpAssetFetcher,
    ResourceTable,
    SectionPreloader,
)
from .services.translation_loader import (
    DirectoryTranslationSource,
    TranslationLoader,
    TranslationSource,
)

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    cache: CacheService
    history: NavigationHistory
    route_config_loader: RouteConfigLoader
    route_resolver: RouteResolver
    guard_chain: GuardChain
    manifest_loader: ManifestLoader
    resource_table: ResourceTable
    section_preloader: SectionPreloader
    location: BrowserLocation
    locale_resolver: LocaleResolver
    translation_loader: TranslationLoader
    navigation_service: NavigationService
    _closeables: List[Any] = field(default_factory=list, repr=False)

    async def close(self) -> None:
        await self.navigation_service.wait_for_background_tasks()
        for closeable in self._closeables:
            await closeable.close()
        self._closeables.clear()
        logger.info("Service container closed")


def build_container(
    settings: Optional[Settings] = None,
    *,
    routes: Optional[Sequence[Any]] = None,
    location: Optional[BrowserLocation] = None,
    manifest_fetcher: Optional[ManifestFetcher] = None,
    asset_fetcher: Optional[AssetFetcher] = None,
    translation_source: Optional[TranslationSource] = None,
) -> ServiceContainer:
    """Construct every service once and share the cache and history between them.

    Collaborators not passed in are built from ``settings``: HTTP fetchers for
    the manifest and assets, and a directory-backed translation source.
    """
    settings = settings or get_settings()
    closeables: List[Any] = []

    cache = CacheService()
    history = NavigationHistory(
        max_entries=settings.history.max_entries,
        max_attempts=settings.guards.attempt_log_size,
    )

    if routes is not None:
        route_config_loader = RouteConfigLoader(routes=routes)
    else:
        route_config_loader = RouteConfigLoader(path=Path(settings.routes.config_path))
    route_resolver = RouteResolver(route_config_loader)
    guard_chain = GuardChain(history, settings.guards)

    if manifest_fetcher is None and not settings.is_development:
        http_manifest_fetcher = HttpManifestFetcher(settings.manifest)
        closeables.append(http_manifest_fetcher)
        manifest_fetcher = http_manifest_fetcher
    manifest_loader = ManifestLoader(
        manifest_fetcher, enabled=manifest_fetcher is not None
    )

    if asset_fetcher is None:
        http_asset_fetcher = HttpAssetFetcher(settings.preload)
        closeables.append(http_asset_fetcher)
        asset_fetcher = http_asset_fetcher
    resource_table = ResourceTable(asset_fetcher)
    section_preloader = SectionPreloader(
        manifest_loader,
        resource_table,
        cache,
        cache_ttl_ms=settings.cache.preload_ttl_ms,
    )

    location = location or BrowserLocation()
    locale_resolver = LocaleResolver(cache, location, settings.locale)

    if translation_source is None:
        translation_source = DirectoryTranslationSource(settings.translations.directory)
    translation_loader = TranslationLoader(
        translation_source,
        cache,
        base_locale=settings.locale.base,
        cache_ttl_ms=settings.cache.translation_ttl_ms,
        wait_timeout=settings.translations.wait_timeout,
    )

    navigation_service = NavigationService(
        route_resolver=route_resolver,
        guard_chain=guard_chain,
        history=history,
        section_preloader=section_preloader,
        translation_loader=translation_loader,
        locale_resolver=locale_resolver,
        settings=settings.guards,
    )

    logger.info("Service container built", environment=settings.environment)
    return ServiceContainer(
        settings=settings,
        cache=cache,
        history=history,
        route_config_loader=route_config_loader,
        route_resolver=route_resolver,
        guard_chain=guard_chain,
        manifest_loader=manifest_loader,
        resource_table=resource_table,
        section_preloader=section_preloader,
        location=location,
        locale_resolver=locale_resolver,
        translation_loader=translation_loader,
        navigation_service=navigation_service,
        _closeables=closeables,
    )
