"""
Route Resolver - find routes by path, resolve role-specific components and
inherit configuration from parent routes.
"""

from typing import List, Optional

import structlog
from pydantic import ValidationError

from ..domain import (
    CATCH_ALL_PATTERN,
    RouteDescriptor,
    deep_merge_prefer_child,
    safely_get_nested_property,
)
from .route_config_loader import RouteConfigLoader

logger = structlog.get_logger(__name__)


def _split_segments(path: str) -> List[str]:
    return [part for part in path.split("/") if part]


def match_route_pattern(target_path: str, route_pattern: str) -> bool:
    """Match ``target_path`` against a parametric or catch-all slug."""
    if route_pattern == CATCH_ALL_PATTERN:
        return True

    if ":" not in route_pattern:
        return False

    pattern_parts = route_pattern.split("/")
    path_parts = target_path.split("/")

    if len(pattern_parts) != len(path_parts) and "*" not in route_pattern:
        return False

    for index, pattern_part in enumerate(pattern_parts):
        if pattern_part.startswith(":"):
            if index >= len(path_parts) or not path_parts[index]:
                return False
            continue
        if index >= len(path_parts) or pattern_part != path_parts[index]:
            return False

    return True


class RouteResolver:
    """Maps paths to route descriptors declared in the static configuration."""

    def __init__(self, config_loader: RouteConfigLoader):
        self._config_loader = config_loader

    @property
    def routes(self) -> List[RouteDescriptor]:
        return self._config_loader.get_routes()

    def find_route_by_slug(self, slug: str) -> Optional[RouteDescriptor]:
        for route in self.routes:
            if route.slug == slug:
                return route
        return None

    def resolve_route_from_path(self, target_path: str) -> Optional[RouteDescriptor]:
        routes = self.routes

        route = self.find_route_by_slug(target_path)
        if route is not None:
            logger.debug("Exact route match found", slug=route.slug)
            return route

        for route in routes:
            if route.is_pattern and match_route_pattern(target_path, route.slug):
                logger.debug("Pattern route match found", slug=route.slug, path=target_path)
                return route

        logger.info("No route match found for path", path=target_path)
        return None

    def resolve_component_path_for_route(
        self, route: RouteDescriptor, user_role: Optional[str]
    ) -> Optional[str]:
        if route.redirect:
            return None

        if route.custom_component_path and user_role:
            role_path = safely_get_nested_property(
                route.custom_component_path, [user_role, "componentPath"]
            )
            if role_path:
                logger.debug(
                    "Role-specific component path found", role=user_role, path=role_path
                )
                return role_path

        if route.component_path:
            return route.component_path

        logger.warning(
            "No component path found for route", slug=route.slug, user_role=user_role
        )
        return None

    def find_parent_route(self, child_slug: str) -> Optional[RouteDescriptor]:
        """Shorten ``child_slug`` one segment at a time until a route matches."""
        parts = _split_segments(child_slug)
        for length in range(len(parts) - 1, 0, -1):
            candidate = "/" + "/".join(parts[:length])
            parent = self.find_route_by_slug(candidate)
            if parent is not None:
                return parent
        return None

    def inherit_configuration_from_parent_route(
        self, child_route: RouteDescriptor
    ) -> RouteDescriptor:
        if not child_route.inherit_config_from_parent:
            return child_route

        parent_route = self.find_parent_route(child_route.slug)
        if parent_route is None:
            logger.debug("No parent route found for inheritance", slug=child_route.slug)
            return child_route

        merged = deep_merge_prefer_child(parent_route.to_config(), child_route.to_config())
        try:
            inherited = RouteDescriptor.model_validate(merged)
        except ValidationError as e:
            logger.error(
                "Merged route configuration is invalid",
                slug=child_route.slug,
                parent_slug=parent_route.slug,
                error=str(e),
            )
            return child_route

        logger.info(
            "Parent configuration inherited",
            slug=child_route.slug,
            parent_slug=parent_route.slug,
        )
        return inherited

    def get_route_chain_for_path(self, target_path: str) -> List[RouteDescriptor]:
        """Routes matched by each path prefix, ancestor first."""
        chain: List[RouteDescriptor] = []
        parts = _split_segments(target_path)
        for length in range(1, len(parts) + 1):
            route = self.resolve_route_from_path("/" + "/".join(parts[:length]))
            if route is not None:
                chain.append(route)
        return chain
