"""Resolve route section declarations to concrete section names."""

from typing import Any, Dict, List, Mapping, Optional

import structlog

from ..domain import RouteDescriptor, dedupe_preserving_order

logger = structlog.get_logger(__name__)


def normalize_section_configuration(section_config: Any) -> Dict[str, Any]:
    """Classify a section declaration as simple, role-based or invalid."""
    if isinstance(section_config, str):
        return {"type": "simple", "value": section_config, "role_based": False}

    if isinstance(section_config, Mapping):
        return {
            "type": "role-based",
            "value": dict(section_config),
            "role_based": True,
            "roles": list(section_config.keys()),
        }

    return {"type": "invalid", "value": None, "role_based": False}


def is_section_role_based(section_config: Any) -> bool:
    return normalize_section_configuration(section_config)["role_based"]


def get_all_section_variants(section_config: Any) -> List[str]:
    if isinstance(section_config, str):
        return [section_config]
    if isinstance(section_config, Mapping):
        return dedupe_preserving_order(
            value for value in section_config.values() if isinstance(value, str) and value
        )
    return []


def resolve_role_section_variant(
    section_config: Any, user_role: Optional[str], fallback: str = "default"
) -> Optional[str]:
    """Pick the section name for ``user_role``.

    A plain string is role-independent. For a role map the order is: the
    role's entry, the ``fallback`` entry, then the first value in the map.
    """
    if isinstance(section_config, str):
        return section_config

    if not isinstance(section_config, Mapping):
        return None

    role_section = section_config.get(user_role) if user_role else None
    if isinstance(role_section, str) and role_section:
        return role_section

    fallback_section = section_config.get(fallback)
    if isinstance(fallback_section, str) and fallback_section:
        return fallback_section

    for value in section_config.values():
        if isinstance(value, str) and value:
            logger.warning(
                "Section map has no entry for role or fallback, using first value",
                user_role=user_role,
                fallback=fallback,
                roles=list(section_config.keys()),
                section=value,
            )
            return value
        break

    return None


def get_preload_sections_for_route(route: RouteDescriptor) -> List[str]:
    try:
        return dedupe_preserving_order(
            section for section in route.preload_sections if section
        )
    except Exception as e:
        logger.error("Error resolving preload sections", error=str(e))
        return []


def get_all_route_sections_for_route(
    route: RouteDescriptor, user_role: Optional[str]
) -> List[str]:
    """The route's own (role-resolved) section followed by its preload list."""
    try:
        sections: List[str] = []
        route_section = resolve_role_section_variant(route.section, user_role)
        if route_section:
            sections.append(route_section)
        sections.extend(get_preload_sections_for_route(route))
        return dedupe_preserving_order(sections)
    except Exception as e:
        logger.error("Error resolving route sections", error=str(e))
        return []
