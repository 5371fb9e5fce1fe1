"""Build manifest entry models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class BundlePaths:
    """Deployed script/style paths for one section."""

    script: Optional[str]
    style: Optional[str]


@dataclass(frozen=True)
class ManifestEntry:
    section: str
    script_path: Optional[str]
    style_path: Optional[str]
    size_bytes: int = 0
    last_modified: Optional[str] = None

    @property
    def bundle_paths(self) -> BundlePaths:
        return BundlePaths(script=self.script_path, style=self.style_path)

    @classmethod
    def from_raw(cls, section: str, raw: Any) -> Optional["ManifestEntry"]:
        """Parse a raw manifest value.

        Accepts the legacy single-path string (script only) and the object
        shape ``{"js": ..., "css": ...}`` (``path`` is an alias for ``js``).
        Returns None for anything else.
        """
        if isinstance(raw, str):
            return cls(section=section, script_path=raw or None, style_path=None)

        if isinstance(raw, dict):
            size = raw.get("size", raw.get("sizeBytes", 0))
            try:
                size_bytes = int(size or 0)
            except (TypeError, ValueError):
                size_bytes = 0
            last_modified = raw.get("lastModified")
            return cls(
                section=section,
                script_path=raw.get("js") or raw.get("path") or None,
                style_path=raw.get("css") or None,
                size_bytes=size_bytes,
                last_modified=str(last_modified) if last_modified else None,
            )

        return None
