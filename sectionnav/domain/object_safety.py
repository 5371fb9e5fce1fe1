"""Safe helpers for nested configuration dictionaries."""

from __future__ import annotations

from typing import Any, Hashable, Iterable, List, Mapping, Optional, Sequence, TypeVar, Union

T = TypeVar("T", bound=Hashable)

_MISSING = object()


def deep_merge_prefer_child(
    parent: Optional[Mapping[str, Any]], child: Optional[Mapping[str, Any]]
) -> dict:
    """Recursively merge ``child`` over ``parent``.

    Nested mappings are merged at every level; any other child value
    (lists included) replaces the parent value outright. Inputs are not
    mutated.
    """
    if not parent and not child:
        return {}
    if not parent:
        return dict(child or {})
    if not child:
        return dict(parent)

    merged = dict(parent)
    for key, child_value in child.items():
        parent_value = merged.get(key)
        if isinstance(child_value, Mapping) and isinstance(parent_value, Mapping):
            merged[key] = deep_merge_prefer_child(parent_value, child_value)
        else:
            merged[key] = child_value
    return merged


def safely_get_nested_property(
    target: Any, path: Union[str, Sequence[str]], fallback: Any = None
) -> Any:
    """Walk ``path`` (dotted string or key list) through nested mappings."""
    if not isinstance(target, Mapping) or not path:
        return fallback

    keys = path.split(".") if isinstance(path, str) else list(path)
    current: Any = target
    for key in keys:
        if not isinstance(current, Mapping):
            return fallback
        value = current.get(key, _MISSING)
        if value is _MISSING:
            return fallback
        current = value
    return current


def dedupe_preserving_order(items: Iterable[T]) -> List[T]:
    seen = set()
    deduped: List[T] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        deduped.append(item)
    return deduped
