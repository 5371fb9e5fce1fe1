"""
Guard Chain - ordered navigation permission checks.

Guards run in a fixed order and the first blocking result wins:
1. Loop prevention
2. Enabled check
3. Authentication check
4. Role check
5. Dependency check

Any exception raised while the chain runs blocks the navigation with a
redirect to the not-found path.
"""

from typing import Any, Mapping, Optional, Union

import structlog

from ..config.settings import GuardSettings
from ..domain import AuthContext, GuardResult, RouteDescriptor
from .navigation_history import NavigationHistory

logger = structlog.get_logger(__name__)

ContextLike = Union[AuthContext, Mapping[str, Any], None]


def coerce_auth_context(context: ContextLike) -> AuthContext:
    if isinstance(context, AuthContext):
        return context
    return AuthContext.from_mapping(context)


class GuardChain:
    """Runs the five navigation guards against a target route."""

    def __init__(self, history: NavigationHistory, settings: Optional[GuardSettings] = None):
        self.settings = settings or GuardSettings()
        self._history = history

    def run_all_route_guards(
        self,
        to_route: RouteDescriptor,
        from_route: Optional[RouteDescriptor] = None,
        context: ContextLike = None,
    ) -> GuardResult:
        logger.debug(
            "Starting guard chain",
            to_path=getattr(to_route, "slug", None),
            from_path=getattr(from_route, "slug", None),
        )
        try:
            auth_context = coerce_auth_context(context)
            guards = (
                ("loop", lambda: self.guard_prevent_navigation_loop(to_route, from_route)),
                ("enabled", lambda: self.guard_check_route_enabled(to_route)),
                ("auth", lambda: self.guard_check_authentication(to_route, auth_context)),
                ("role", lambda: self.guard_check_user_role(to_route, auth_context)),
                ("dependency", lambda: self.guard_check_dependencies(to_route, auth_context)),
            )
            for guard_name, guard in guards:
                result = guard()
                if not result.allow:
                    logger.info(
                        "Navigation blocked",
                        guard=guard_name,
                        path=to_route.slug,
                        redirect_to=result.redirect_to,
                        reason=result.reason,
                    )
                    return result

            return GuardResult.allowed("All guards passed")

        except Exception as e:
            logger.error("Guard chain execution failed", error=str(e))
            return GuardResult.blocked(self.settings.not_found_path, "Guard execution failed")

    def guard_prevent_navigation_loop(
        self, to_route: RouteDescriptor, from_route: Optional[RouteDescriptor] = None
    ) -> GuardResult:
        """Block when the target already fills the recent attempt window.

        The attempt is recorded first; the window is the ``loop_window``
        attempts that preceded it.
        """
        path = to_route.slug
        window = self.settings.loop_window
        recent = self._history.get_recent_attempts(window)
        self._history.record_navigation_attempt(path)

        repeated = sum(1 for entry in recent if entry.path == path)
        if repeated >= self.settings.loop_threshold:
            logger.warning("Navigation loop detected", path=path, count=repeated)
            return GuardResult.blocked(self.settings.not_found_path, "Navigation loop detected")

        return GuardResult.allowed("No loop detected")

    def guard_check_route_enabled(self, route: RouteDescriptor) -> GuardResult:
        if route.enabled is False:
            return GuardResult.blocked(self.settings.not_found_path, "Route is disabled")
        return GuardResult.allowed("Route is enabled")

    def guard_check_authentication(
        self, route: RouteDescriptor, context: AuthContext
    ) -> GuardResult:
        if route.requires_auth and not context.is_authenticated:
            redirect_path = route.redirect_if_not_auth or self.settings.login_path
            return GuardResult.blocked(redirect_path, "Authentication required")

        if route.redirect_if_logged_in and context.is_authenticated:
            return GuardResult.blocked(route.redirect_if_logged_in, "Already authenticated")

        return GuardResult.allowed("Authentication check passed")

    def guard_check_user_role(self, route: RouteDescriptor, context: AuthContext) -> GuardResult:
        if not route.supported_roles:
            return GuardResult.allowed("No role restrictions")

        if route.allows_all_roles:
            return GuardResult.allowed("Route allows all roles")

        user_role = context.user_role or "guest"
        if user_role not in route.supported_roles:
            return GuardResult.blocked(
                self.settings.not_found_path, f"Role {user_role} not authorized"
            )

        return GuardResult.allowed("Role check passed")

    def guard_check_dependencies(
        self, route: RouteDescriptor, context: AuthContext
    ) -> GuardResult:
        dependencies = route.dependencies
        if dependencies is None:
            return GuardResult.allowed("No dependencies")

        user_role = context.user_role or "guest"
        profile = context.user_profile or {}

        for dependency_key, requirement in dependencies.roles.get(user_role, {}).items():
            if requirement.required and profile.get(dependency_key) is not True:
                return GuardResult.blocked(
                    requirement.fallback_slug or self.settings.dependency_fallback_path,
                    f"Missing required dependency: {dependency_key}",
                )

        if dependencies.onboarding_required is not None:
            if profile.get("onboardingPassed") is not True:
                return GuardResult.blocked(
                    dependencies.onboarding_required.fallback_slug
                    or self.settings.onboarding_path,
                    "Onboarding not completed",
                )

        return GuardResult.allowed("All dependencies met")
