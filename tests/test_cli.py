"""CLI behavior tests for sectionnav subcommands."""

import io
import json
import sys

import pytest
from rich.console import Console

from sectionnav import __main__ as cli


@pytest.fixture
def output(monkeypatch):
    buffer = io.StringIO()
    monkeypatch.setattr(cli, "console", Console(file=buffer, width=200))
    monkeypatch.setattr(cli, "configure_logging", lambda settings: None)
    return buffer


@pytest.fixture
def manifest_file(tmp_path, manifest_payload):
    path = tmp_path / "section-manifest.json"
    path.write_text(json.dumps(manifest_payload), encoding="utf-8")
    return path


def test_validate_routes_reports_valid_file(monkeypatch, output, route_config_file):
    monkeypatch.setattr(
        sys, "argv", ["sectionnav", "--routes", str(route_config_file), "validate-routes"]
    )

    assert cli.main() == 0
    assert "valid" in output.getvalue()


def test_validate_routes_reports_duplicates(monkeypatch, output, tmp_path):
    path = tmp_path / "routes.json"
    path.write_text(
        json.dumps(
            [
                {"slug": "/a", "section": "a", "componentPath": "A.vue"},
                {"slug": "/a", "section": "a", "componentPath": "A.vue"},
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setattr(sys, "argv", ["sectionnav", "--routes", str(path), "validate-routes"])

    assert cli.main() == 1
    assert "DUPLICATE_SLUGS" in output.getvalue()


def test_resolve_shows_inherited_route(monkeypatch, output, route_config_file):
    monkeypatch.setattr(
        sys,
        "argv",
        ["sectionnav", "--routes", str(route_config_file), "resolve", "/dashboard/settings"],
    )

    assert cli.main() == 0
    rendered = output.getvalue()
    assert "@/views/dashboard/Settings.vue" in rendered
    assert "/dashboard > /dashboard/settings" in rendered


def test_missing_route_file_fails_startup_check(monkeypatch, output, tmp_path):
    monkeypatch.setattr(
        sys,
        "argv",
        ["sectionnav", "--routes", str(tmp_path / "absent.json"), "navigate", "/"],
    )

    assert cli.main() == 2
    assert "missing" in output.getvalue()


def test_navigate_refuses_invalid_route_file(monkeypatch, output, tmp_path):
    path = tmp_path / "routes.json"
    path.write_text(json.dumps([{"slug": "/a", "section": "a"}]), encoding="utf-8")
    monkeypatch.setattr(sys, "argv", ["sectionnav", "--routes", str(path), "navigate", "/a"])

    assert cli.main() == 2
    assert "missing 'componentPath'" in output.getvalue()


def test_navigate_runs_guards_and_preloads(
    monkeypatch, output, route_config_file, manifest_file, translation_dir
):
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "sectionnav",
            "--routes",
            str(route_config_file),
            "navigate",
            "/dashboard",
            "--authenticated",
            "--role",
            "creator",
            "--profile",
            "onboardingPassed=true",
            "--manifest",
            str(manifest_file),
            "--i18n",
            str(translation_dir),
        ],
    )

    assert cli.main() == 0
    rendered = output.getvalue()
    assert "All guards passed" in rendered
    assert "Preloaded sections: dashboard-creator, settings" in rendered
    assert "/assets/sections/settings.js" in rendered


def test_navigate_returns_nonzero_when_blocked(monkeypatch, output, route_config_file):
    monkeypatch.setattr(
        sys, "argv", ["sectionnav", "--routes", str(route_config_file), "navigate", "/dashboard"]
    )

    assert cli.main() == 1
    assert "/log-in" in output.getvalue()


def test_locale_reads_url_parameter(monkeypatch, output):
    monkeypatch.setattr(
        sys, "argv", ["sectionnav", "locale", "--url", "http://localhost/?locale=vi"]
    )

    assert cli.main() == 0
    assert "Active locale: vi" in output.getvalue()


def test_locale_set_rejects_unsupported_code(monkeypatch, output):
    monkeypatch.setattr(sys, "argv", ["sectionnav", "locale", "--set", "fr"])

    assert cli.main() == 1
    assert "Unsupported locale" in output.getvalue()


def test_parse_profile_coerces_booleans():
    assert cli._parse_profile(["onboardingPassed=true", "plan=pro", "beta=FALSE"]) == {
        "onboardingPassed": True,
        "plan": "pro",
        "beta": False,
    }
