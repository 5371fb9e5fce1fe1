"""CLI entry point for sectionnav."""

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from .config.settings import Settings, get_settings
from .container import ServiceContainer, build_container
from .logging import configure_logging
from .services.cache_service import CacheService
from .services.locale_resolver import BrowserLocation, LocaleResolver
from .services.manifest_loader import file_manifest_fetcher
from .services.route_config_loader import RouteConfigLoader, validate_route_config
from .services.route_resolver import RouteResolver
from .services.section_preloader import ResourceReference
from .services.section_resolver import get_all_route_sections_for_route
from .services.startup_checks import StartupCheckError, ensure_route_config_file

console = Console()


async def _register_only(reference: ResourceReference) -> None:
    """Asset fetcher that records references without warming them."""
    return None


def _parse_profile(items: Optional[List[str]]) -> Dict[str, Any]:
    profile: Dict[str, Any] = {}
    for item in items or []:
        key, _, raw_value = item.partition("=")
        lowered = raw_value.strip().lower()
        if lowered in ("true", "false"):
            profile[key.strip()] = lowered == "true"
        else:
            profile[key.strip()] = raw_value
    return profile


def _load_settings(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    if getattr(args, "routes", None):
        settings.routes.config_path = args.routes
    if getattr(args, "i18n", None):
        settings.translations.directory = args.i18n
    if getattr(args, "log_level", None):
        settings.logging.level = args.log_level.upper()
    return settings


def _build(args: argparse.Namespace, settings: Settings) -> ServiceContainer:
    overrides: Dict[str, Any] = {}
    if getattr(args, "manifest", None):
        overrides["manifest_fetcher"] = file_manifest_fetcher(args.manifest)
    if not getattr(args, "warm", False):
        overrides["asset_fetcher"] = _register_only
    return build_container(settings, **overrides)


def run_resolve(args: argparse.Namespace, settings: Settings) -> int:
    resolver = RouteResolver(RouteConfigLoader(path=settings.routes.config_path))
    route = resolver.resolve_route_from_path(args.path)
    if route is None:
        console.print(f"[red]No route matches[/red] {args.path}")
        return 1

    route = resolver.inherit_configuration_from_parent_route(route)
    table = Table(title=f"Route for {args.path}", box=box.SIMPLE)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("slug", route.slug)
    table.add_row("component", str(resolver.resolve_component_path_for_route(route, args.role)))
    table.add_row("sections", ", ".join(get_all_route_sections_for_route(route, args.role)) or "-")
    table.add_row("requires auth", str(route.requires_auth))
    table.add_row("enabled", str(route.enabled))
    table.add_row("redirect", route.redirect or "-")
    table.add_row(
        "chain", " > ".join(r.slug for r in resolver.get_route_chain_for_path(args.path)) or "-"
    )
    console.print(table)
    return 0


async def _navigate_all(container: ServiceContainer, args: argparse.Namespace) -> List[Any]:
    context = {
        "isAuthenticated": args.authenticated,
        "userRole": args.role,
        "userProfile": _parse_profile(args.profile),
    }
    outcomes = []
    try:
        for path in args.paths:
            outcomes.append(await container.navigation_service.navigate(path, context))
        await container.navigation_service.wait_for_background_tasks()
    finally:
        await container.close()
    return outcomes


def run_navigate(args: argparse.Namespace, settings: Settings) -> int:
    container = _build(args, settings)
    outcomes = asyncio.run(_navigate_all(container, args))

    table = Table(title="Navigation", box=box.SIMPLE)
    table.add_column("Path", style="cyan")
    table.add_column("Allowed")
    table.add_column("Redirect")
    table.add_column("Reason")
    table.add_column("Sections")
    for outcome in outcomes:
        table.add_row(
            outcome.path,
            "[green]yes[/green]" if outcome.allowed else "[red]no[/red]",
            outcome.redirect_to or "-",
            outcome.guard.reason,
            ", ".join(outcome.sections) or "-",
        )
    console.print(table)

    stats = container.section_preloader.get_preload_statistics()
    console.print(f"Preloaded sections: {', '.join(stats['preloaded_sections']) or '-'}")
    for reference in container.resource_table.references():
        console.print(f"  {reference.rel:<14} {reference.as_:<7} {reference.href}")
    return 0 if all(outcome.allowed for outcome in outcomes) else 1


def run_validate_routes(args: argparse.Namespace, settings: Settings) -> int:
    path = Path(settings.routes.config_path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read route configuration:[/red] {e}")
        return 2

    report = validate_route_config(raw)
    if not report.errors and not report.warnings:
        console.print(f"[green]Route configuration is valid[/green] ({len(raw)} routes)")
        return 0

    table = Table(title=f"Route validation: {path}", box=box.SIMPLE)
    table.add_column("Level")
    table.add_column("Type", style="cyan")
    table.add_column("Message")
    for error in report.errors:
        table.add_row("[red]error[/red]", error["type"], error["message"])
    for warning in report.warnings:
        table.add_row("[yellow]warning[/yellow]", warning["type"], warning["message"])
    console.print(table)
    return 0 if report.valid else 1


def run_locale(args: argparse.Namespace, settings: Settings) -> int:
    location = BrowserLocation(href=args.url, language=args.language)
    resolver = LocaleResolver(CacheService(), location, settings.locale)

    if args.set:
        if not resolver.set_active_locale(args.set):
            console.print(
                f"[red]Unsupported locale[/red] {args.set} "
                f"(supported: {', '.join(resolver.get_supported_locales())})"
            )
            return 1
        console.print(f"URL updated to {location.href}")

    table = Table(title="Locale sources", box=box.SIMPLE)
    table.add_column("Priority")
    table.add_column("Source", style="cyan")
    table.add_column("Value")
    for entry in resolver.get_locale_preference_order():
        table.add_row(str(entry["priority"]), entry["source"], str(entry["value"] or "-"))
    console.print(table)

    active = resolver.resolve_active_locale()
    console.print(f"Active locale: {active} ({resolver.get_locale_display_name(active)})")
    return 0


COMMANDS = {
    "resolve": run_resolve,
    "navigate": run_navigate,
    "validate-routes": run_validate_routes,
    "locale": run_locale,
}

ROUTE_FILE_COMMANDS = ("resolve", "navigate")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sectionnav", description="Section-aware route resolution and preloading"
    )
    parser.add_argument("--routes", help="Route configuration JSON file")
    parser.add_argument("--log-level", help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a path to its route")
    resolve_parser.add_argument("path")
    resolve_parser.add_argument("--role", default="guest")

    navigate_parser = subparsers.add_parser(
        "navigate", help="Run paths through the guard chain and preload their sections"
    )
    navigate_parser.add_argument("paths", nargs="+")
    navigate_parser.add_argument("--authenticated", action="store_true")
    navigate_parser.add_argument("--role", default="guest")
    navigate_parser.add_argument(
        "--profile", action="append", metavar="KEY=VALUE", help="User profile flag"
    )
    navigate_parser.add_argument("--manifest", help="Section manifest JSON file")
    navigate_parser.add_argument("--i18n", help="Translation directory")
    navigate_parser.add_argument(
        "--warm", action="store_true", help="Fetch assets over HTTP instead of only registering them"
    )

    subparsers.add_parser("validate-routes", help="Validate the route configuration")

    locale_parser = subparsers.add_parser("locale", help="Show or set the active locale")
    locale_parser.add_argument("--url", default="http://localhost/")
    locale_parser.add_argument("--language", help="Browser language, e.g. vi-VN")
    locale_parser.add_argument("--set", help="Locale code to activate")
    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    settings = _load_settings(args)
    configure_logging(settings.logging)

    if args.command in ROUTE_FILE_COMMANDS:
        try:
            ensure_route_config_file(settings.routes.config_path)
        except StartupCheckError as e:
            console.print(f"[red]{e}[/red]")
            return 2

    return COMMANDS[args.command](args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
