"""Tests for route configuration startup checks."""

import json
from pathlib import Path

import pytest

from sectionnav.services.startup_checks import StartupCheckError, ensure_route_config_file


@pytest.fixture
def write_routes(tmp_path):
    def _write(payload, name="routes.json"):
        path = tmp_path / name
        text = payload if isinstance(payload, str) else json.dumps(payload)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


def test_missing_route_file_fails(tmp_path):
    with pytest.raises(StartupCheckError, match="missing"):
        ensure_route_config_file(tmp_path / "absent.json")


def test_unparseable_route_file_fails(write_routes):
    with pytest.raises(StartupCheckError, match="unreadable"):
        ensure_route_config_file(write_routes("{not-json"))


def test_duplicate_slugs_are_listed(write_routes):
    path = write_routes(
        [
            {"slug": "/a", "section": "a", "componentPath": "A.vue"},
            {"slug": "/a", "section": "a", "componentPath": "A.vue"},
            {"slug": "/b", "section": "b", "componentPath": "B.vue"},
            {"slug": "/b", "section": "b", "componentPath": "B.vue"},
        ]
    )

    with pytest.raises(StartupCheckError) as exc_info:
        ensure_route_config_file(path)

    assert exc_info.value.problems == ["Found duplicate route slugs: /a, /b"]


def test_every_validation_error_is_reported(write_routes):
    path = write_routes(
        [
            {"slug": "/no-component", "section": "x"},
            {"section": "y", "componentPath": "Y.vue"},
            {"slug": "/typed", "section": "z", "componentPath": "Z.vue", "requiresAuth": "yes"},
        ]
    )

    with pytest.raises(StartupCheckError) as exc_info:
        ensure_route_config_file(path)

    problems = exc_info.value.problems
    assert len(problems) == 3
    assert "missing 'componentPath'" in problems[0]
    assert "missing required field 'slug'" in problems[1]
    assert "invalid requiresAuth type" in problems[2]
    assert "/no-component" in str(exc_info.value)


def test_non_array_config_fails(write_routes):
    with pytest.raises(StartupCheckError) as exc_info:
        ensure_route_config_file(write_routes({"slug": "/"}))

    assert exc_info.value.problems == ["Route config must be an array"]


def test_empty_route_list_fails(write_routes):
    with pytest.raises(StartupCheckError, match="declares no routes"):
        ensure_route_config_file(write_routes([]))


def test_undeclared_redirect_targets_are_warnings(route_config_file):
    report = ensure_route_config_file(route_config_file)

    assert report.valid
    assert [warning["type"] for warning in report.warnings] == ["UNKNOWN_ROUTE_TARGET"]
    assert report.warnings[0]["field"] == "fallbackSlug"
    assert "/sign-up/onboarding" in report.warnings[0]["message"]


def test_strict_mode_fails_on_warnings(route_config_file):
    with pytest.raises(StartupCheckError) as exc_info:
        ensure_route_config_file(route_config_file, strict=True)

    assert len(exc_info.value.problems) == 1
    assert "/sign-up/onboarding" in exc_info.value.problems[0]


def test_orphaned_child_route_is_reported(write_routes):
    path = write_routes(
        [
            {"slug": "/", "section": "home", "componentPath": "Home.vue"},
            {
                "slug": "/account/settings",
                "section": "settings",
                "componentPath": "Settings.vue",
                "inheritConfigFromParent": True,
            },
            {"slug": "/old-home", "redirect": "/"},
        ]
    )

    report = ensure_route_config_file(path)

    assert [warning["type"] for warning in report.warnings] == ["MISSING_PARENT_ROUTE"]


def test_shipped_route_config_passes_strict_checks():
    shipped = Path(__file__).resolve().parents[2] / "routes" / "routeConfig.json"

    report = ensure_route_config_file(shipped, strict=True)

    assert report.valid
    assert report.warnings == []
