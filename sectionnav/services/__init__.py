"""Services package for sectionnav."""

from .cache_service import CacheEntry, CacheService
from .guard_chain import GuardChain, coerce_auth_context
from .locale_resolver import BrowserLocation, LocaleResolver
from .manifest_loader import (
    HttpManifestFetcher,
    ManifestLoader,
    ManifestLoaderError,
    file_manifest_fetcher,
    parse_manifest,
)
from .navigation_history import HistoryEntry, NavigationHistory
from .navigation_service import NavigationOutcome, NavigationService
from .route_config_loader import (
    RouteConfigError,
    RouteConfigLoader,
    RouteValidationReport,
    validate_route_config,
)
from .route_resolver import RouteResolver, match_route_pattern
from .section_preloader import (
    HttpAssetFetcher,
    PreloadState,
    ResourceKind,
    ResourceLoadError,
    ResourceReference,
    ResourceTable,
    SectionPreloader,
)
from .section_resolver import (
    get_all_route_sections_for_route,
    get_all_section_variants,
    get_preload_sections_for_route,
    is_section_role_based,
    normalize_section_configuration,
    resolve_role_section_variant,
)
from .startup_checks import StartupCheckError, ensure_route_config_file
from .translation_loader import (
    DirectoryTranslationSource,
    TranslationLoadError,
    TranslationLoader,
)

__all__ = [
    "CacheEntry",
    "CacheService",
    "GuardChain",
    "coerce_auth_context",
    "BrowserLocation",
    "LocaleResolver",
    "HttpManifestFetcher",
    "ManifestLoader",
    "ManifestLoaderError",
    "file_manifest_fetcher",
    "parse_manifest",
    "HistoryEntry",
    "NavigationHistory",
    "NavigationOutcome",
    "NavigationService",
    "RouteConfigError",
    "RouteConfigLoader",
    "RouteValidationReport",
    "validate_route_config",
    "RouteResolver",
    "match_route_pattern",
    "HttpAssetFetcher",
    "PreloadState",
    "ResourceKind",
    "ResourceLoadError",
    "ResourceReference",
    "ResourceTable",
    "SectionPreloader",
    "get_all_route_sections_for_route",
    "get_all_section_variants",
    "get_preload_sections_for_route",
    "is_section_role_based",
    "normalize_section_configuration",
    "resolve_role_section_variant",
    "StartupCheckError",
    "ensure_route_config_file",
    "DirectoryTranslationSource",
    "TranslationLoadError",
    "TranslationLoader",
]
