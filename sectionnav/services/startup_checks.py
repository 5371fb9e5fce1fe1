"""Startup checks run against the route configuration before serving navigations."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from .route_config_loader import (
    RouteConfigError,
    RouteConfigLoader,
    RouteValidationReport,
    validate_route_config,
)
from .route_resolver import RouteResolver

logger = structlog.get_logger(__name__)


class StartupCheckError(RuntimeError):
    """Raised when the route configuration cannot back navigation."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        self.problems = list(problems or [])
        if self.problems:
            message = message + "\n" + "\n".join(f"  - {problem}" for problem in self.problems)
        super().__init__(message)


def _describe_error(error: Dict[str, Any]) -> str:
    message = error.get("message") or error.get("type", "Unknown route error")
    duplicates = error.get("duplicates")
    if duplicates:
        message = f"{message}: {', '.join(duplicates)}"
    return message


def _route_target_warnings(resolver: RouteResolver) -> List[Dict[str, Any]]:
    """Redirect targets and inherited parents that no declared route serves."""
    warnings: List[Dict[str, Any]] = []

    for route in resolver.routes:
        targets = {
            "redirect": route.redirect,
            "redirectIfNotAuth": route.redirect_if_not_auth,
            "redirectIfLoggedIn": route.redirect_if_logged_in,
        }
        onboarding = route.dependencies.onboarding_required if route.dependencies else None
        if onboarding is not None:
            targets["fallbackSlug"] = onboarding.fallback_slug

        for field_name, target in targets.items():
            if not target:
                continue
            matched = resolver.resolve_route_from_path(target)
            if matched is None or matched.is_catch_all:
                warnings.append(
                    {
                        "type": "UNKNOWN_ROUTE_TARGET",
                        "field": field_name,
                        "message": f"Route {route.slug} sends {field_name} to undeclared path {target}",
                    }
                )

        if route.inherit_config_from_parent and resolver.find_parent_route(route.slug) is None:
            warnings.append(
                {
                    "type": "MISSING_PARENT_ROUTE",
                    "field": "inheritConfigFromParent",
                    "message": f"Route {route.slug} inherits from a parent route that is not declared",
                }
            )

    return warnings


def ensure_route_config_file(
    path: Union[str, Path], *, strict: bool = False
) -> RouteValidationReport:
    """Validate the route configuration file and return its report.

    Validation errors (missing slugs or components, wrong field types,
    duplicate slugs) and an empty route list always fail. Redirects and
    onboarding fallbacks pointing at undeclared paths, and child routes with
    no parent to inherit from, are reported as warnings and only fail when
    ``strict`` is set.
    """
    config_path = Path(path).expanduser()
    if not config_path.is_file():
        raise StartupCheckError(f"Route configuration file is missing at '{config_path}'.")

    try:
        raw = RouteConfigLoader(config_path).read_raw()
    except RouteConfigError as exc:
        raise StartupCheckError(f"Route configuration '{config_path}' is unreadable: {exc}") from exc

    report = validate_route_config(raw)
    if not report.valid:
        raise StartupCheckError(
            f"Route configuration '{config_path}' is invalid:",
            [_describe_error(error) for error in report.errors],
        )

    resolver = RouteResolver(RouteConfigLoader(routes=raw))
    if not resolver.routes:
        raise StartupCheckError(f"Route configuration '{config_path}' declares no routes.")

    report.warnings.extend(_route_target_warnings(resolver))
    for warning in report.warnings:
        logger.warning("Route configuration warning", path=str(config_path), detail=warning["message"])

    if strict and report.warnings:
        raise StartupCheckError(
            f"Route configuration '{config_path}' has unresolved warnings:",
            [warning["message"] for warning in report.warnings],
        )

    logger.info("Route configuration passed startup checks", route_count=len(resolver.routes))
    return report
