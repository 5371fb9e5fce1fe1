"""
Manifest Loader - maps section names to their deployed script/style bundles.
The manifest is produced at build time; the runtime only reads it.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import httpx
import structlog

from ..config.settings import ManifestSettings
from ..domain import BundlePaths, ManifestEntry

logger = structlog.get_logger(__name__)

ManifestFetcher = Callable[[], Awaitable[Any]]
Manifest = Dict[str, ManifestEntry]


class ManifestLoaderError(Exception):
    """Raised internally when the manifest cannot be fetched or parsed."""


def parse_manifest(raw: Any) -> Manifest:
    """Convert a raw ``{section: path | {js, css}}`` mapping into entries."""
    if not isinstance(raw, dict):
        raise ManifestLoaderError(
            f"Manifest must be a JSON object, got {type(raw).__name__}"
        )

    manifest: Manifest = {}
    for section, value in raw.items():
        entry = ManifestEntry.from_raw(str(section), value)
        if entry is None:
            logger.warning("Skipping malformed manifest entry", section=section)
            continue
        manifest[entry.section] = entry
    return manifest


def file_manifest_fetcher(path: Union[str, Path]) -> ManifestFetcher:
    """Fetcher that reads the manifest from a local JSON file."""
    manifest_path = Path(path).expanduser()

    async def _read_file() -> Any:
        try:
            return json.loads(manifest_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ManifestLoaderError(f"Cannot read manifest file: {e}")
        except json.JSONDecodeError as e:
            raise ManifestLoaderError(f"Invalid manifest JSON: {e}")

    return _read_file


class HttpManifestFetcher:
    """Fetch the manifest JSON over HTTP."""

    def __init__(self, settings: ManifestSettings, client: Optional[httpx.AsyncClient] = None):
        self.url = httpx.URL(settings.base_url).join(settings.url)
        self.client = client or httpx.AsyncClient(timeout=settings.timeout)

    async def __call__(self) -> Any:
        try:
            response = await self.client.get(self.url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise ManifestLoaderError(
                f"Manifest request failed with status {e.response.status_code}"
            )
        except httpx.HTTPError as e:
            raise ManifestLoaderError(f"HTTP error: {e}")
        except ValueError as e:
            raise ManifestLoaderError(f"Invalid manifest JSON: {e}")

    async def close(self):
        await self.client.aclose()


class ManifestLoader:
    """Loads the section manifest once and serves bundle path lookups.

    Failure to fetch or parse yields an empty manifest: sections without an
    entry simply are not preloaded.
    """

    def __init__(self, fetcher: Optional[ManifestFetcher] = None, *, enabled: bool = True):
        self._fetcher = fetcher
        self._enabled = enabled and fetcher is not None
        self._cached: Optional[Manifest] = None
        self._pending: Optional["asyncio.Future[Manifest]"] = None

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ManifestLoader":
        return cls(file_manifest_fetcher(path))

    @property
    def is_loaded(self) -> bool:
        return self._cached is not None

    async def load(self) -> Manifest:
        """Return the manifest, fetching it on first use.

        Callers arriving while the first fetch is running await that fetch
        instead of starting their own.
        """
        if self._cached is not None:
            return self._cached

        if self._pending is not None:
            logger.debug("Waiting for in-flight manifest load")
            return await asyncio.shield(self._pending)

        if not self._enabled:
            logger.info("Manifest loading disabled, using empty manifest")
            self._cached = {}
            return self._cached

        # No await between the pending check above and this registration.
        future: "asyncio.Future[Manifest]" = asyncio.get_running_loop().create_future()
        self._pending = future

        manifest: Manifest = {}
        try:
            raw = await self._fetcher()
            manifest = parse_manifest(raw)
            logger.info("Manifest loaded", section_count=len(manifest))
        except Exception as e:
            logger.error("Failed to load manifest", error=str(e))
        finally:
            self._pending = None
            if not future.done():
                future.set_result(manifest)

        self._cached = manifest
        return manifest

    async def resolve_bundle_paths(
        self, section_name: str, manifest: Optional[Manifest] = None
    ) -> Optional[BundlePaths]:
        try:
            manifest_data = manifest if manifest is not None else await self.load()
            entry = manifest_data.get(section_name)
        except Exception as e:
            logger.error("Failed to resolve bundle paths", section=section_name, error=str(e))
            return None

        if entry is None:
            logger.debug(
                "Section not found in manifest",
                section=section_name,
                available_sections=len(manifest_data),
            )
            return None

        if not isinstance(entry, ManifestEntry):
            entry = ManifestEntry.from_raw(section_name, entry)
            if entry is None:
                logger.warning("Invalid manifest entry format", section=section_name)
                return None

        return entry.bundle_paths

    def clear_cache(self) -> None:
        self._cached = None
        logger.info("Manifest cache cleared")
