"""
Section Preload Coordinator - deduplicated, idempotent preloading of section
script and style bundles.

A section is preloaded at most once at a time: while a preload is in flight
further calls for the same section return False immediately instead of
awaiting the same work. Resource references are only injected when the
resource table does not already hold one for the exact path.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

import httpx
import structlog

from ..config.settings import PreloadSettings
from ..domain import dedupe_preserving_order
from .cache_service import CacheService
from .manifest_loader import ManifestLoader

logger = structlog.get_logger(__name__)

PRELOAD_CACHE_KEY_PREFIX = "section_preload_"
DEFAULT_PRELOAD_TTL_MS = 2 * 60 * 60 * 1000


class PreloadState(str, Enum):
    NOT_REQUESTED = "not_requested"
    IN_PROGRESS = "in_progress"
    LOADED = "loaded"
    FAILED = "failed"


class ResourceKind(str, Enum):
    SCRIPT = "script"
    STYLE = "style"


class ResourceLoadError(Exception):
    """Raised when a preloaded resource signals an error."""


@dataclass(frozen=True)
class ResourceReference:
    """A preload hint registered in the resource table."""

    href: str
    rel: str
    as_: str
    section: Optional[str] = None

    @classmethod
    def for_kind(cls, href: str, kind: ResourceKind, section: Optional[str] = None) -> "ResourceReference":
        if kind is ResourceKind.SCRIPT:
            return cls(href=href, rel="modulepreload", as_="script", section=section)
        return cls(href=href, rel="preload", as_="style", section=section)


AssetFetcher = Callable[[ResourceReference], Awaitable[Any]]


class HttpAssetFetcher:
    """Warm an asset by fetching it over HTTP."""

    def __init__(self, settings: PreloadSettings, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(
            base_url=settings.asset_base_url, timeout=settings.fetch_timeout
        )

    async def __call__(self, reference: ResourceReference) -> None:
        try:
            response = await self.client.get(reference.href)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ResourceLoadError(f"Failed to load {reference.href}: {e}")

    async def close(self):
        await self.client.aclose()


class ResourceTable:
    """Registry of injected resource references keyed by exact path.

    ``inject`` registers the reference before it starts loading, so any
    later lookup for the same path finds it even while it is still loading.
    A reference whose load fails is removed again.
    """

    def __init__(self, fetcher: AssetFetcher):
        self._fetcher = fetcher
        self._references: Dict[str, ResourceReference] = {}

    def find(self, href: str) -> Optional[ResourceReference]:
        return self._references.get(href)

    def references(self) -> List[ResourceReference]:
        return list(self._references.values())

    async def inject(self, reference: ResourceReference) -> None:
        self._references[reference.href] = reference
        try:
            await self._fetcher(reference)
        except Exception as e:
            self._references.pop(reference.href, None)
            if isinstance(e, ResourceLoadError):
                raise
            raise ResourceLoadError(f"Failed to load {reference.href}: {e}") from e

    def clear(self) -> int:
        count = len(self._references)
        self._references.clear()
        return count


class SectionPreloader:
    """Coordinates section bundle preloads against the resource table."""

    def __init__(
        self,
        manifest_loader: ManifestLoader,
        resource_table: ResourceTable,
        cache: CacheService,
        *,
        cache_ttl_ms: int = DEFAULT_PRELOAD_TTL_MS,
    ):
        self._manifest_loader = manifest_loader
        self._resource_table = resource_table
        self._cache = cache
        self._cache_ttl_ms = cache_ttl_ms
        self._in_progress: Set[str] = set()
        self._preloaded: Set[str] = set()
        self._failed: Set[str] = set()

    async def preload_section(self, section_name: str) -> bool:
        if section_name in self._preloaded:
            logger.debug("Section already preloaded", section=section_name)
            return True

        if section_name in self._in_progress:
            logger.debug("Section preload already in progress", section=section_name)
            return False

        # No await between the checks above and this mark.
        self._in_progress.add(section_name)
        self._failed.discard(section_name)

        try:
            bundle_paths = await self._manifest_loader.resolve_bundle_paths(section_name)
            if bundle_paths is None:
                logger.info("No bundle paths found in manifest", section=section_name)
                self._failed.add(section_name)
                return False

            if bundle_paths.script:
                await self._preload_asset(bundle_paths.script, ResourceKind.SCRIPT, section_name)
            if bundle_paths.style:
                await self._preload_asset(bundle_paths.style, ResourceKind.STYLE, section_name)

            self._preloaded.add(section_name)
            self._cache.set(
                PRELOAD_CACHE_KEY_PREFIX + section_name,
                {"loaded": True, "timestamp": int(self._cache.now())},
                self._cache_ttl_ms,
            )
            logger.info("Section preloaded", section=section_name)
            return True

        except Exception as e:
            logger.error("Section preload failed", section=section_name, error=str(e))
            self._failed.add(section_name)
            return False

        finally:
            self._in_progress.discard(section_name)

    async def _preload_asset(self, href: str, kind: ResourceKind, section_name: str) -> None:
        existing = self._resource_table.find(href)
        if existing is not None:
            logger.debug(
                "Resource reference already exists",
                href=href,
                section=section_name,
                existing_rel=existing.rel,
            )
            return

        await self._resource_table.inject(ResourceReference.for_kind(href, kind, section_name))
        logger.debug("Resource preloaded", href=href, kind=kind.value, section=section_name)

    async def preload_multiple_sections(self, section_names: List[str]) -> Dict[str, List[str]]:
        names = dedupe_preserving_order(section_names)
        results = await asyncio.gather(
            *(self.preload_section(name) for name in names), return_exceptions=True
        )

        successful: List[str] = []
        failed: List[str] = []
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error("Section preload failed in batch", section=name, error=str(result))
                failed.append(name)
            elif result:
                successful.append(name)
            else:
                failed.append(name)

        logger.info(
            "Batch preload completed",
            total=len(names),
            successful=len(successful),
            failed=len(failed),
        )
        return {"successful": successful, "failed": failed}

    def get_preload_state(self, section_name: str) -> PreloadState:
        if section_name in self._in_progress:
            return PreloadState.IN_PROGRESS
        if section_name in self._preloaded:
            return PreloadState.LOADED
        if section_name in self._failed:
            return PreloadState.FAILED
        return PreloadState.NOT_REQUESTED

    def is_section_preloaded(self, section_name: str) -> bool:
        return section_name in self._preloaded

    def clear_preload_state(self) -> None:
        cleared = len(self._preloaded)
        self._preloaded.clear()
        self._in_progress.clear()
        self._failed.clear()
        logger.info("Preload state cleared", cleared_count=cleared)

    def get_preload_statistics(self) -> Dict[str, Any]:
        return {
            "preloaded_count": len(self._preloaded),
            "preloaded_sections": sorted(self._preloaded),
            "in_progress_count": len(self._in_progress),
            "in_progress_sections": sorted(self._in_progress),
        }
