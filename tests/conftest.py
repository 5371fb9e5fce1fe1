"""
Pytest configuration and fixtures for sectionnav tests.
"""

import copy
import json
from pathlib import Path

import pytest

from sectionnav.config.settings import Settings
from sectionnav.container import build_container
from sectionnav.domain import RouteDescriptor
from sectionnav.services.cache_service import CacheService
from sectionnav.services.guard_chain import GuardChain
from sectionnav.services.navigation_history import NavigationHistory
from sectionnav.services.route_config_loader import RouteConfigLoader
from sectionnav.services.route_resolver import RouteResolver
from sectionnav.services.translation_loader import DirectoryTranslationSource

SAMPLE_ROUTES = [
    {
        "slug": "/",
        "section": "home",
        "componentPath": "@/views/Home.vue",
        "supportedRoles": ["all"],
    },
    {
        "slug": "/log-in",
        "section": "auth",
        "componentPath": "@/views/auth/LogIn.vue",
        "redirectIfLoggedIn": "/dashboard",
    },
    {
        "slug": "/dashboard",
        "section": {"creator": "dashboard-creator", "default": "dashboard"},
        "componentPath": "@/views/dashboard/Dashboard.vue",
        "customComponentPath": {
            "creator": {"componentPath": "@/views/dashboard/CreatorDashboard.vue"}
        },
        "requiresAuth": True,
        "supportedRoles": ["creator", "fan"],
        "preLoadSections": ["settings"],
        "dependencies": {"onboardingRequired": {"fallbackSlug": "/sign-up/onboarding"}},
    },
    {
        "slug": "/dashboard/settings",
        "section": "settings",
        "componentPath": "@/views/dashboard/Settings.vue",
        "inheritConfigFromParent": True,
    },
    {
        "slug": "/profile/:id",
        "section": "profile",
        "componentPath": "@/views/profile/Profile.vue",
    },
    {"slug": "/home", "redirect": "/"},
    {
        "slug": "/404",
        "section": "misc",
        "componentPath": "@/views/NotFound.vue",
        "preloadExclude": True,
    },
    {
        "slug": "/:pathMatch(.*)*",
        "componentPath": "@/views/NotFound.vue",
        "preloadExclude": True,
    },
]

SAMPLE_MANIFEST = {
    "home": {"js": "/assets/sections/home.js", "css": "/assets/sections/home.css"},
    "dashboard": {"js": "/assets/sections/dashboard.js", "css": "/assets/sections/dashboard.css"},
    "dashboard-creator": {"js": "/assets/sections/dashboard-creator.js"},
    "settings": "/assets/sections/settings.js",
    "profile": {"js": "/assets/sections/profile.js", "css": "/assets/sections/profile.css"},
}


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 1_700_000_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class RecordingFetcher:
    """Asset fetcher that records every reference it is asked to load."""

    def __init__(self):
        self.calls = []

    async def __call__(self, reference):
        self.calls.append(reference)


@pytest.fixture
def make_route():
    def _make(**fields) -> RouteDescriptor:
        fields.setdefault("slug", "/somewhere")
        return RouteDescriptor.model_validate(fields)

    return _make


@pytest.fixture
def route_config():
    return copy.deepcopy(SAMPLE_ROUTES)


@pytest.fixture
def manifest_payload():
    return copy.deepcopy(SAMPLE_MANIFEST)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def cache(fake_clock):
    return CacheService(clock=fake_clock)


@pytest.fixture
def history():
    return NavigationHistory()


@pytest.fixture
def guard_chain(history):
    return GuardChain(history)


@pytest.fixture
def route_resolver(route_config):
    return RouteResolver(RouteConfigLoader(routes=route_config))


@pytest.fixture
def route_config_file(tmp_path, route_config):
    path = tmp_path / "routeConfig.json"
    path.write_text(json.dumps(route_config), encoding="utf-8")
    return path


@pytest.fixture
def translation_dir(tmp_path) -> Path:
    """Translation units for dashboard (en, vi), settings (en only) and orphan (vi only)."""
    root = tmp_path / "i18n"
    units = {
        ("dashboard", "en"): {"title": "Dashboard", "welcome": "Welcome back"},
        ("dashboard", "vi"): {"title": "Bảng điều khiển"},
        ("settings", "en"): {"title": "Settings", "save": "Save"},
        ("orphan", "vi"): {"title": "Mồ côi"},
    }
    for (section, locale), payload in units.items():
        unit_dir = root / f"section-{section}"
        unit_dir.mkdir(parents=True, exist_ok=True)
        (unit_dir / f"{locale}.json").write_text(
            json.dumps(payload, ensure_ascii=False), encoding="utf-8"
        )
    return root


@pytest.fixture
def asset_fetcher():
    return RecordingFetcher()


@pytest.fixture
def container(route_config, manifest_payload, asset_fetcher, translation_dir):
    async def fetch_manifest():
        return manifest_payload

    return build_container(
        Settings(environment="test"),
        routes=route_config,
        manifest_fetcher=fetch_manifest,
        asset_fetcher=asset_fetcher,
        translation_source=DirectoryTranslationSource(translation_dir),
    )
