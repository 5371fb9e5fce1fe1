"""
Route Config Loader - reads, validates and caches the static route configuration.
Invalid entries are logged and dropped; loading never raises to callers.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog
from pydantic import ValidationError

from ..domain import RouteDescriptor

logger = structlog.get_logger(__name__)

BOOLEAN_FIELDS = ("requiresAuth", "enabled", "inheritConfigFromParent", "preloadExclude")


class RouteConfigError(Exception):
    """Raised internally when the route configuration cannot be read."""


@dataclass
class RouteValidationReport:
    valid: bool
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[Dict[str, Any]] = field(default_factory=list)


def _type_error(index: int, slug: Any, field_name: str, expected: str, value: Any) -> Dict[str, Any]:
    return {
        "type": "INVALID_FIELD_TYPE",
        "route_index": index,
        "field": field_name,
        "message": f"Route at index {index} ({slug}) has invalid {field_name} type",
        "expected": expected,
        "received": type(value).__name__,
    }


def validate_route_config(routes: Any) -> RouteValidationReport:
    """Check route entries for required fields, field types and duplicate slugs."""
    errors: List[Dict[str, Any]] = []
    warnings: List[Dict[str, Any]] = []

    if not isinstance(routes, list):
        errors.append(
            {
                "type": "INVALID_TYPE",
                "message": "Route config must be an array",
                "value": type(routes).__name__,
            }
        )
        return RouteValidationReport(valid=False, errors=errors, warnings=warnings)

    for index, route in enumerate(routes):
        if not isinstance(route, dict):
            errors.append(
                {
                    "type": "INVALID_TYPE",
                    "route_index": index,
                    "message": f"Route at index {index} must be an object",
                    "value": type(route).__name__,
                }
            )
            continue

        slug = route.get("slug")
        if not slug or not isinstance(slug, str):
            errors.append(
                {
                    "type": "MISSING_REQUIRED_FIELD",
                    "route_index": index,
                    "field": "slug",
                    "message": f"Route at index {index} missing required field 'slug' or slug is not a string",
                }
            )

        redirect = route.get("redirect")
        component_path = route.get("componentPath")
        if not redirect and (not component_path or not isinstance(component_path, str)):
            if not route.get("customComponentPath"):
                errors.append(
                    {
                        "type": "MISSING_REQUIRED_FIELD",
                        "route_index": index,
                        "field": "componentPath",
                        "message": f"Route at index {index} ({slug}) missing 'componentPath' or 'customComponentPath'",
                    }
                )

        is_catch_all = isinstance(slug, str) and "pathMatch" in slug
        if not redirect and not is_catch_all and not route.get("section"):
            warnings.append(
                {
                    "type": "MISSING_RECOMMENDED_FIELD",
                    "route_index": index,
                    "field": "section",
                    "message": f"Route at index {index} ({slug}) missing 'section' field",
                }
            )

        if redirect is not None and not isinstance(redirect, str):
            errors.append(_type_error(index, slug, "redirect", "string", redirect))

        for list_field in ("supportedRoles", "preLoadSections"):
            value = route.get(list_field)
            if value is not None and not isinstance(value, list):
                errors.append(_type_error(index, slug, list_field, "array", value))

        for bool_field in BOOLEAN_FIELDS:
            value = route.get(bool_field)
            if value is not None and not isinstance(value, bool):
                errors.append(_type_error(index, slug, bool_field, "boolean", value))

        dependencies = route.get("dependencies")
        if dependencies is not None and not isinstance(dependencies, dict):
            errors.append(_type_error(index, slug, "dependencies", "object", dependencies))

    seen = set()
    duplicates: List[str] = []
    for route in routes:
        slug = route.get("slug") if isinstance(route, dict) else None
        if not slug:
            continue
        if slug in seen and slug not in duplicates:
            duplicates.append(slug)
        seen.add(slug)
    if duplicates:
        errors.append(
            {
                "type": "DUPLICATE_SLUGS",
                "message": "Found duplicate route slugs",
                "duplicates": duplicates,
            }
        )

    report = RouteValidationReport(valid=not errors, errors=errors, warnings=warnings)
    if errors:
        logger.warning("Route configuration has errors", error_count=len(errors))
    if warnings:
        logger.info("Route configuration has warnings", warning_count=len(warnings))
    return report


def parse_route_descriptors(routes: Sequence[Any]) -> Tuple[List[RouteDescriptor], int]:
    """Build descriptors from raw entries.

    Returns (descriptors, dropped_count).
    """
    descriptors: List[RouteDescriptor] = []
    dropped = 0
    for raw in routes:
        if not isinstance(raw, dict):
            dropped += 1
            continue
        try:
            descriptors.append(RouteDescriptor.model_validate(raw))
        except ValidationError as e:
            dropped += 1
            logger.warning("Dropping invalid route entry", slug=raw.get("slug"), error=str(e))
    return descriptors, dropped


class RouteConfigLoader:
    """Owns the ordered route descriptors for the process lifetime."""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        routes: Optional[Sequence[Any]] = None,
    ):
        self._path = Path(path).expanduser() if path is not None else None
        self._raw_routes = list(routes) if routes is not None else None
        self._routes: Optional[List[RouteDescriptor]] = None
        self.last_report: Optional[RouteValidationReport] = None

    def read_raw(self) -> Any:
        if self._raw_routes is not None:
            return self._raw_routes
        if self._path is None:
            raise RouteConfigError("No route configuration source configured")
        try:
            return json.loads(self._path.read_text(encoding="utf-8"))
        except OSError as e:
            raise RouteConfigError(f"Cannot read route configuration: {e}")
        except json.JSONDecodeError as e:
            raise RouteConfigError(f"Invalid JSON in route configuration: {e}")

    def load(self) -> List[RouteDescriptor]:
        try:
            raw = self.read_raw()
            self.last_report = validate_route_config(raw)
            if not isinstance(raw, list):
                raise RouteConfigError("Route configuration is not an array")
            descriptors, dropped = parse_route_descriptors(raw)
            logger.info(
                "Route configuration loaded",
                route_count=len(descriptors),
                dropped=dropped,
                valid=self.last_report.valid,
            )
            return descriptors
        except Exception as e:
            logger.error("Failed to load route configuration", error=str(e))
            return []

    def get_routes(self) -> List[RouteDescriptor]:
        if self._routes is None:
            self._routes = self.load()
        return self._routes

    def reset(self) -> None:
        self._routes = None
