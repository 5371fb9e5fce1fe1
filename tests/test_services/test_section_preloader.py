"""Tests for section bundle preloading."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from sectionnav.config.settings import PreloadSettings
from sectionnav.services.manifest_loader import ManifestLoader
from sectionnav.services.section_preloader import (
    HttpAssetFetcher,
    PreloadState,
    ResourceKind,
    ResourceLoadError,
    ResourceReference,
    ResourceTable,
    SectionPreloader,
)


@pytest.fixture
def resource_table(asset_fetcher):
    return ResourceTable(asset_fetcher)


@pytest.fixture
def preloader(manifest_payload, resource_table, cache):
    loader = ManifestLoader(AsyncMock(return_value=manifest_payload))
    return SectionPreloader(loader, resource_table, cache)


def test_reference_kinds():
    script = ResourceReference.for_kind("/a.js", ResourceKind.SCRIPT)
    style = ResourceReference.for_kind("/a.css", ResourceKind.STYLE)

    assert (script.rel, script.as_) == ("modulepreload", "script")
    assert (style.rel, style.as_) == ("preload", "style")


@pytest.mark.asyncio
async def test_preload_injects_script_and_style(preloader, resource_table, cache):
    assert await preloader.preload_section("dashboard") is True

    hrefs = sorted(reference.href for reference in resource_table.references())
    assert hrefs == ["/assets/sections/dashboard.css", "/assets/sections/dashboard.js"]
    assert preloader.get_preload_state("dashboard") is PreloadState.LOADED
    assert cache.get("section_preload_dashboard")["loaded"] is True


@pytest.mark.asyncio
async def test_concurrent_preloads_inject_each_asset_once(manifest_payload, cache):
    calls = []

    async def slow_fetcher(reference):
        calls.append(reference)
        await asyncio.sleep(0.01)

    preloader = SectionPreloader(
        ManifestLoader(AsyncMock(return_value=manifest_payload)),
        ResourceTable(slow_fetcher),
        cache,
    )

    results = await asyncio.gather(
        preloader.preload_section("dashboard"), preloader.preload_section("dashboard")
    )

    assert results == [True, False]
    assert sorted(reference.as_ for reference in calls) == ["script", "style"]
    assert preloader.is_section_preloaded("dashboard")


@pytest.mark.asyncio
async def test_repeat_preload_is_idempotent(preloader, asset_fetcher):
    await preloader.preload_section("home")

    assert await preloader.preload_section("home") is True
    assert len(asset_fetcher.calls) == 2


@pytest.mark.asyncio
async def test_section_missing_from_manifest_returns_false(preloader, resource_table):
    assert await preloader.preload_section("unknown") is False
    assert resource_table.references() == []
    assert preloader.get_preload_state("unknown") is PreloadState.FAILED


@pytest.mark.asyncio
async def test_legacy_entry_preloads_script_only(preloader, asset_fetcher):
    assert await preloader.preload_section("settings") is True

    assert [reference.href for reference in asset_fetcher.calls] == ["/assets/sections/settings.js"]


@pytest.mark.asyncio
async def test_existing_reference_is_not_injected_again(cache, asset_fetcher):
    manifest = {
        "a": {"js": "/assets/shared.js", "css": "/assets/a.css"},
        "b": {"js": "/assets/shared.js"},
    }
    table = ResourceTable(asset_fetcher)
    preloader = SectionPreloader(ManifestLoader(AsyncMock(return_value=manifest)), table, cache)

    await preloader.preload_section("a")
    await preloader.preload_section("b")

    assert [reference.href for reference in asset_fetcher.calls] == [
        "/assets/shared.js",
        "/assets/a.css",
    ]
    assert table.find("/assets/shared.js").section == "a"


@pytest.mark.asyncio
async def test_failed_asset_load_marks_section_failed_and_allows_retry(manifest_payload, cache):
    fetcher = AsyncMock(side_effect=[ResourceLoadError("boom"), None, None])
    table = ResourceTable(fetcher)
    preloader = SectionPreloader(
        ManifestLoader(AsyncMock(return_value=manifest_payload)), table, cache
    )

    assert await preloader.preload_section("dashboard") is False
    assert preloader.get_preload_state("dashboard") is PreloadState.FAILED
    assert table.references() == []

    assert await preloader.preload_section("dashboard") is True
    assert len(table.references()) == 2


@pytest.mark.asyncio
async def test_unexpected_fetch_error_is_wrapped():
    table = ResourceTable(AsyncMock(side_effect=ValueError("bad")))

    with pytest.raises(ResourceLoadError):
        await table.inject(ResourceReference.for_kind("/x.js", ResourceKind.SCRIPT))
    assert table.find("/x.js") is None


@pytest.mark.asyncio
async def test_preload_multiple_sections_deduplicates_and_partitions(preloader):
    result = await preloader.preload_multiple_sections(["home", "dashboard", "home", "missing"])

    assert result == {"successful": ["home", "dashboard"], "failed": ["missing"]}


@pytest.mark.asyncio
async def test_batch_preload_fetches_manifest_once(manifest_payload, cache, asset_fetcher):
    calls = []

    async def slow_manifest():
        calls.append(1)
        await asyncio.sleep(0.01)
        return manifest_payload

    preloader = SectionPreloader(ManifestLoader(slow_manifest), ResourceTable(asset_fetcher), cache)

    result = await preloader.preload_multiple_sections(["home", "dashboard", "profile"])

    assert len(calls) == 1
    assert result["successful"] == ["home", "dashboard", "profile"]


@pytest.mark.asyncio
async def test_preload_marker_uses_cache_clock(preloader, cache, fake_clock):
    await preloader.preload_section("home")

    assert cache.get("section_preload_home") == {"loaded": True, "timestamp": int(fake_clock.now)}


@pytest.mark.asyncio
async def test_statistics_and_clear(preloader, resource_table):
    await preloader.preload_multiple_sections(["profile", "home"])

    stats = preloader.get_preload_statistics()
    assert stats == {
        "preloaded_count": 2,
        "preloaded_sections": ["home", "profile"],
        "in_progress_count": 0,
        "in_progress_sections": [],
    }

    preloader.clear_preload_state()
    assert preloader.is_section_preloaded("home") is False
    assert preloader.get_preload_state("home") is PreloadState.NOT_REQUESTED
    assert resource_table.clear() == 4


def test_unrequested_section_state(preloader):
    assert preloader.get_preload_state("home") is PreloadState.NOT_REQUESTED


@pytest.mark.asyncio
async def test_http_asset_fetcher_raises_on_error_status():
    client = httpx.AsyncClient(
        base_url="http://cdn.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(404)),
    )
    fetcher = HttpAssetFetcher(PreloadSettings(), client)

    with pytest.raises(ResourceLoadError):
        await fetcher(ResourceReference.for_kind("/assets/missing.js", ResourceKind.SCRIPT))
    await fetcher.close()


@pytest.mark.asyncio
async def test_http_asset_fetcher_requests_relative_to_base_url():
    requested = []

    def handler(request):
        requested.append(str(request.url))
        return httpx.Response(200, text="export default {}")

    client = httpx.AsyncClient(base_url="http://cdn.test", transport=httpx.MockTransport(handler))
    fetcher = HttpAssetFetcher(PreloadSettings(), client)

    await fetcher(ResourceReference.for_kind("/assets/home.js", ResourceKind.SCRIPT))
    await fetcher.close()

    assert requested == ["http://cdn.test/assets/home.js"]
