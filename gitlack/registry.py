"""
Event handler registry for Gitlack.

GitLab names each webhook with an ``X-Gitlab-Event`` header value such as
"Issue Hook". Handler classes register themselves under that name and the
engine looks them up here.
"""

from collections.abc import Callable

from gitlack.core import EventHandler


class EventRegistry:
    """Mapping of GitLab event kinds to handler classes."""

    def __init__(self) -> None:
        self._handlers: dict[str, type[EventHandler]] = {}

    def register(self, event_kind: str, cls: type[EventHandler]) -> None:
        """Register a handler implementation."""
        self._handlers[event_kind] = cls

    def get(self, event_kind: str) -> type[EventHandler]:
        """Get a handler class by event kind."""
        if event_kind not in self._handlers:
            raise ValueError(f"Unknown event kind: {event_kind}")
        return self._handlers[event_kind]

    def __contains__(self, event_kind: object) -> bool:
        return event_kind in self._handlers

    def list_events(self) -> list[str]:
        """List all registered event kinds."""
        return list(self._handlers.keys())


# Global registry instance
_registry = EventRegistry()


def register_event(event_kind: str) -> Callable[[type[EventHandler]], type[EventHandler]]:
    """Decorator to register an event handler class."""
    def decorator(cls: type[EventHandler]) -> type[EventHandler]:
        _registry.register(event_kind, cls)
        return cls
    return decorator


def get_registry() -> EventRegistry:
    """Get the global event registry."""
    return _registry
