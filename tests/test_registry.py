"""
Tests for the event handler registry.
"""

from typing import Any

import pytest

# Import handler modules to trigger decorator registration
# pylint: disable=unused-import
# ruff: noqa: F401
import gitlack.events
from gitlack.core import EventHandler
from gitlack.events.comments import CommentHandler
from gitlack.events.issues import IssueHandler
from gitlack.events.merge_request import MergeRequestHandler
from gitlack.events.tag_push import TagPushHandler
from gitlack.payloads import IssueEvent
from gitlack.registry import EventRegistry, get_registry


class TestEventRegistry:
    """Tests for EventRegistry class."""

    def test_register_and_get(self) -> None:
        """Test registering and retrieving a handler."""
        registry = EventRegistry()

        class TestHandler(EventHandler):
            payload_model = IssueEvent

            def handle(self, event: Any) -> None:
                pass

        registry.register("Test Hook", TestHandler)

        assert registry.get("Test Hook") is TestHandler
        assert "Test Hook" in registry
        assert registry.list_events() == ["Test Hook"]

    def test_get_unknown_kind(self) -> None:
        """Test that unknown event kinds raise ValueError."""
        registry = EventRegistry()

        with pytest.raises(ValueError, match="Unknown event kind"):
            registry.get("Pipeline Hook")


class TestGlobalRegistry:
    """Tests for the handlers registered by the events package."""

    def test_builtin_handlers_registered(self) -> None:
        """Test that every supported GitLab event has a handler."""
        registry = get_registry()

        assert registry.get("Issue Hook") is IssueHandler
        assert registry.get("Merge Request Hook") is MergeRequestHandler
        assert registry.get("Tag Push Hook") is TagPushHandler
        assert registry.get("Note Hook") is CommentHandler

    def test_unsupported_kinds_absent(self) -> None:
        """Test that unsupported events are not registered."""
        registry = get_registry()

        assert "Push Hook" not in registry
        assert "Pipeline Hook" not in registry

    def test_events_package_exports(self) -> None:
        """Test that the events package exposes its handlers."""
        for name in ("IssueHandler", "MergeRequestHandler", "TagPushHandler", "CommentHandler"):
            assert name in gitlack.events.__all__
