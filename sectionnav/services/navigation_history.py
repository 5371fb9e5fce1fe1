"""Bounded navigation history used for loop detection and back-navigation queries."""

import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

import structlog

from ..domain import RouteDescriptor

logger = structlog.get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class HistoryEntry:
    path: Optional[str]
    timestamp_ms: int
    route: Optional[RouteDescriptor] = None


class NavigationHistory:
    """Ring buffers of visited routes and attempted navigations.

    Visited routes feed current/previous/back queries. Attempts are recorded
    by the loop guard before a navigation is approved, so they include
    navigations that were later blocked.
    """

    def __init__(
        self,
        max_entries: int = 100,
        max_attempts: int = 50,
        clock: Callable[[], int] = _now_ms,
    ):
        self._clock = clock
        self._history: Deque[HistoryEntry] = deque(maxlen=max_entries)
        self._attempts: Deque[HistoryEntry] = deque(maxlen=max_attempts)
        self._current: Optional[RouteDescriptor] = None
        self._previous: Optional[RouteDescriptor] = None

    def set_current_active_route(self, route: Optional[RouteDescriptor]) -> None:
        if self._current is not None:
            self._previous = self._current
        self._current = route
        self._history.append(
            HistoryEntry(
                path=route.slug if route is not None else None,
                timestamp_ms=self._clock(),
                route=route,
            )
        )
        logger.debug(
            "Active route updated",
            current_path=self.get_current_active_path(),
            previous_path=self.get_previous_active_path(),
            history_size=len(self._history),
        )

    def record_navigation_attempt(self, path: Optional[str]) -> HistoryEntry:
        entry = HistoryEntry(path=path, timestamp_ms=self._clock())
        self._attempts.append(entry)
        return entry

    def get_recent_attempts(self, count: int) -> List[HistoryEntry]:
        if count <= 0:
            return []
        return list(self._attempts)[-count:]

    def get_current_active_route(self) -> Optional[RouteDescriptor]:
        return self._current

    def get_current_active_path(self) -> Optional[str]:
        return self._current.slug if self._current is not None else None

    def get_previous_active_route(self) -> Optional[RouteDescriptor]:
        return self._previous

    def get_previous_active_path(self) -> Optional[str]:
        return self._previous.slug if self._previous is not None else None

    def get_navigation_history(self, max_entries: Optional[int] = None) -> List[HistoryEntry]:
        entries = list(self._history)
        if max_entries and max_entries > 0:
            return entries[-max_entries:]
        return entries

    def can_navigate_back(self) -> bool:
        return len(self._history) > 1

    def is_on_path(self, target_path: str) -> bool:
        return self.get_current_active_path() == target_path

    def was_previously_on_path(self, target_path: str) -> bool:
        return any(entry.path == target_path for entry in self._history)

    def get_navigation_statistics(self) -> Dict[str, Any]:
        entries = list(self._history)
        return {
            "total_navigations": len(entries),
            "current_route": self.get_current_active_path(),
            "previous_route": self.get_previous_active_path(),
            "can_go_back": len(entries) > 1,
            "unique_routes": len({entry.path for entry in entries}),
            "oldest_entry": entries[0].timestamp_ms if entries else None,
            "newest_entry": entries[-1].timestamp_ms if entries else None,
        }

    def clear_navigation_history(self) -> None:
        self._current = None
        self._previous = None
        self._history.clear()
        self._attempts.clear()
        logger.info("Navigation history cleared")
