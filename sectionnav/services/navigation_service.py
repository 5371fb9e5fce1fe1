"""
Navigation Service - resolve, guard and record a navigation, then warm the
target's sections and translations in the background.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Set

import structlog

from ..config.settings import GuardSettings
from ..domain import GuardResult, RouteDescriptor
from .guard_chain import ContextLike, GuardChain, coerce_auth_context
from .locale_resolver import LocaleResolver
from .navigation_history import NavigationHistory
from .route_resolver import RouteResolver
from .section_preloader import SectionPreloader
from .section_resolver import get_all_route_sections_for_route
from .translation_loader import TranslationLoader

logger = structlog.get_logger(__name__)


@dataclass
class NavigationOutcome:
    """Result of a single navigation request."""

    path: str
    route: Optional[RouteDescriptor]
    guard: GuardResult
    sections: List[str] = field(default_factory=list)
    preload_task: Optional["asyncio.Task[None]"] = None

    @property
    def allowed(self) -> bool:
        return self.guard.allow

    @property
    def redirect_to(self) -> Optional[str]:
        return self.guard.redirect_to


class NavigationService:
    """Shared navigation flow for router hooks and the CLI."""

    def __init__(
        self,
        *,
        route_resolver: RouteResolver,
        guard_chain: GuardChain,
        history: NavigationHistory,
        section_preloader: SectionPreloader,
        translation_loader: TranslationLoader,
        locale_resolver: LocaleResolver,
        settings: Optional[GuardSettings] = None,
    ):
        self.settings = settings or GuardSettings()
        self._route_resolver = route_resolver
        self._guard_chain = guard_chain
        self._history = history
        self._section_preloader = section_preloader
        self._translation_loader = translation_loader
        self._locale_resolver = locale_resolver
        self._background_tasks: Set["asyncio.Task[None]"] = set()

    async def navigate(
        self,
        path: str,
        context: ContextLike = None,
        *,
        source_path: Optional[str] = None,
    ) -> NavigationOutcome:
        auth_context = coerce_auth_context(context)

        route = self._route_resolver.resolve_route_from_path(path)
        if route is None:
            return NavigationOutcome(
                path=path,
                route=None,
                guard=GuardResult.blocked(self.settings.not_found_path, "Route not found"),
            )

        if route.redirect:
            return NavigationOutcome(
                path=path,
                route=route,
                guard=GuardResult.blocked(route.redirect, f"Route redirects to {route.redirect}"),
            )

        route = self._route_resolver.inherit_configuration_from_parent_route(route)

        if source_path is not None:
            from_route = self._route_resolver.resolve_route_from_path(source_path)
        else:
            from_route = self._history.get_current_active_route()

        guard_result = self._guard_chain.run_all_route_guards(route, from_route, auth_context)
        if not guard_result.allow:
            return NavigationOutcome(path=path, route=route, guard=guard_result)

        self._history.set_current_active_route(route)

        sections = get_all_route_sections_for_route(route, auth_context.user_role)
        outcome = NavigationOutcome(path=path, route=route, guard=guard_result, sections=sections)

        if route.preload_exclude:
            logger.info("Route excluded from preloading", path=path)
        elif sections:
            outcome.preload_task = self._schedule_preload(sections)

        logger.info("Navigation completed", path=path, slug=route.slug, sections=sections)
        return outcome

    def _schedule_preload(self, sections: List[str]) -> "asyncio.Task[None]":
        task = asyncio.get_running_loop().create_task(self._preload_route_assets(sections))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def _preload_route_assets(self, sections: List[str]) -> None:
        try:
            locale_code = self._locale_resolver.get_active_locale()
            results = await asyncio.gather(
                self._section_preloader.preload_multiple_sections(sections),
                self._translation_loader.preload_translations_for_sections(sections, locale_code),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, BaseException):
                    logger.error("Background preload failed", sections=sections, error=str(result))
        except Exception as e:
            logger.error("Background preload failed", sections=sections, error=str(e))

    async def wait_for_background_tasks(self) -> None:
        """Await preloads scheduled by earlier navigations."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
