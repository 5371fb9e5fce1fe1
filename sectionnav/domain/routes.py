"""Typed route descriptors, auth context and guard results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

CATCH_ALL_PATTERN = "/:pathMatch(.*)*"
ALL_ROLES_SENTINELS = frozenset({"all", "any"})
DEFAULT_ROLE = "guest"

SectionConfig = Union[str, Dict[str, str]]


class DependencyRequirement(BaseModel):
    """A single role-scoped dependency (e.g. a completed-onboarding flag)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    required: bool = False
    fallback_slug: Optional[str] = Field(default=None, alias="fallbackSlug")


class OnboardingRequirement(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    fallback_slug: Optional[str] = Field(default=None, alias="fallbackSlug")


class RouteDependencies(BaseModel):
    """Dependency rules a user must satisfy before entering a route."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    onboarding_required: Optional[OnboardingRequirement] = Field(
        default=None, alias="onboardingRequired"
    )
    roles: Dict[str, Dict[str, DependencyRequirement]] = Field(default_factory=dict)


class RouteDescriptor(BaseModel):
    """Immutable route declaration loaded from the static route configuration.

    Accepts the camelCase keys used by the JSON configuration as well as the
    snake_case field names. Unknown keys are kept so parent inheritance can
    carry them through.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    slug: str
    section: Optional[SectionConfig] = None
    component_path: Optional[str] = Field(default=None, alias="componentPath")
    custom_component_path: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, alias="customComponentPath"
    )
    requires_auth: bool = Field(default=False, alias="requiresAuth")
    supported_roles: List[str] = Field(default_factory=list, alias="supportedRoles")
    preload_sections: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "preLoadSections", "preloadSections", "preload_sections"
        ),
        serialization_alias="preLoadSections",
    )
    dependencies: Optional[RouteDependencies] = None
    enabled: bool = True
    redirect: Optional[str] = None
    redirect_if_not_auth: Optional[str] = Field(default=None, alias="redirectIfNotAuth")
    redirect_if_logged_in: Optional[str] = Field(
        default=None, alias="redirectIfLoggedIn"
    )
    inherit_config_from_parent: bool = Field(
        default=False, alias="inheritConfigFromParent"
    )
    preload_exclude: bool = Field(default=False, alias="preloadExclude")

    @property
    def is_catch_all(self) -> bool:
        return self.slug == CATCH_ALL_PATTERN

    @property
    def is_pattern(self) -> bool:
        return ":" in self.slug or "*" in self.slug

    @property
    def allows_all_roles(self) -> bool:
        return not self.supported_roles or any(
            role in ALL_ROLES_SENTINELS for role in self.supported_roles
        )

    def to_config(self) -> Dict[str, Any]:
        """Return the declared (explicitly set) keys in configuration form."""
        return self.model_dump(by_alias=True, exclude_unset=True)


@dataclass(frozen=True)
class AuthContext:
    """Per-navigation auth snapshot handed over by the session collaborator."""

    is_authenticated: bool = False
    user_role: str = DEFAULT_ROLE
    user_profile: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, payload: Optional[Mapping[str, Any]]) -> "AuthContext":
        data = payload if isinstance(payload, Mapping) else {}
        profile = data.get("userProfile", data.get("user_profile")) or {}
        if not isinstance(profile, Mapping):
            profile = {}
        role = data.get("userRole", data.get("user_role")) or DEFAULT_ROLE
        return cls(
            is_authenticated=bool(
                data.get("isAuthenticated", data.get("is_authenticated", False))
            ),
            user_role=str(role),
            user_profile=dict(profile),
        )


@dataclass(frozen=True)
class GuardResult:
    """Terminal allow/redirect decision produced by a navigation guard."""

    allow: bool
    redirect_to: Optional[str]
    reason: str

    @classmethod
    def allowed(cls, reason: str) -> "GuardResult":
        return cls(allow=True, redirect_to=None, reason=reason)

    @classmethod
    def blocked(cls, redirect_to: Optional[str], reason: str) -> "GuardResult":
        return cls(allow=False, redirect_to=redirect_to, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allow": self.allow,
            "redirectTo": self.redirect_to,
            "reason": self.reason,
        }
