"""Tests for section declaration resolution."""

from sectionnav.services.section_resolver import (
    get_all_route_sections_for_route,
    get_all_section_variants,
    get_preload_sections_for_route,
    is_section_role_based,
    normalize_section_configuration,
    resolve_role_section_variant,
)


def test_simple_section_is_role_independent():
    assert resolve_role_section_variant("dashboard", "creator") == "dashboard"
    assert is_section_role_based("dashboard") is False


def test_role_map_prefers_role_then_default():
    section_map = {"creator": "dashboard-creator", "default": "dashboard"}

    assert resolve_role_section_variant(section_map, "creator") == "dashboard-creator"
    assert resolve_role_section_variant(section_map, "fan") == "dashboard"
    assert resolve_role_section_variant(section_map, None) == "dashboard"


def test_role_map_custom_fallback_key():
    section_map = {"creator": "studio", "guest": "landing"}

    assert resolve_role_section_variant(section_map, "fan", fallback="guest") == "landing"


def test_role_map_without_match_or_default_uses_first_value():
    assert resolve_role_section_variant({"creator": "studio", "fan": "feed"}, "admin") == "studio"


def test_invalid_section_declarations_resolve_to_none():
    assert resolve_role_section_variant(None, "fan") is None
    assert resolve_role_section_variant(42, "fan") is None
    assert resolve_role_section_variant({}, "fan") is None


def test_normalize_section_configuration_shapes():
    assert normalize_section_configuration("home") == {
        "type": "simple",
        "value": "home",
        "role_based": False,
    }
    role_based = normalize_section_configuration({"creator": "studio"})
    assert role_based["type"] == "role-based"
    assert role_based["roles"] == ["creator"]
    assert normalize_section_configuration(3)["type"] == "invalid"


def test_section_variants_are_unique():
    assert get_all_section_variants({"a": "x", "b": "y", "c": "x"}) == ["x", "y"]
    assert get_all_section_variants("home") == ["home"]
    assert get_all_section_variants(None) == []


def test_preload_sections_are_deduplicated(make_route):
    route = make_route(preLoadSections=["settings", "billing", "settings", ""])

    assert get_preload_sections_for_route(route) == ["settings", "billing"]


def test_route_sections_combine_own_section_and_preloads(make_route):
    route = make_route(
        section={"creator": "dashboard-creator", "default": "dashboard"},
        preLoadSections=["settings", "dashboard-creator"],
    )

    assert get_all_route_sections_for_route(route, "creator") == ["dashboard-creator", "settings"]
    assert get_all_route_sections_for_route(route, "fan") == [
        "dashboard",
        "settings",
        "dashboard-creator",
    ]


def test_route_without_section_returns_only_preloads(make_route):
    route = make_route(preloadSections=["settings"])

    assert get_all_route_sections_for_route(route, "fan") == ["settings"]
