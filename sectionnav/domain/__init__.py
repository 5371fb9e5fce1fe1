"""Domain-level shared models and helpers."""

from .manifest import BundlePaths, ManifestEntry
from .object_safety import (
    dedupe_preserving_order,
    deep_merge_prefer_child,
    safely_get_nested_property,
)
from .routes import (
    ALL_ROLES_SENTINELS,
    CATCH_ALL_PATTERN,
    DEFAULT_ROLE,
    AuthContext,
    DependencyRequirement,
    GuardResult,
    OnboardingRequirement,
    RouteDependencies,
    RouteDescriptor,
    SectionConfig,
)

__all__ = [
    "BundlePaths",
    "ManifestEntry",
    "deep_merge_prefer_child",
    "safely_get_nested_property",
    "dedupe_preserving_order",
    "RouteDescriptor",
    "RouteDependencies",
    "DependencyRequirement",
    "OnboardingRequirement",
    "AuthContext",
    "GuardResult",
    "SectionConfig",
    "CATCH_ALL_PATTERN",
    "ALL_ROLES_SENTINELS",
    "DEFAULT_ROLE",
]
