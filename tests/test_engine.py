"""
Tests for event dispatch in the engine.
"""

from unittest.mock import MagicMock, patch

from gitlack.engine import EventEngine
from gitlack.errors import StoreError

from webhooks import issue_body


class TestEventEngine:
    """Tests for EventEngine.handle_event."""

    def test_one_handler_per_kind(self, engine: EventEngine, tracker: MagicMock) -> None:
        """Test that handlers are built once with the shared collaborators."""
        assert set(engine.handlers) == {"Issue Hook", "Merge Request Hook", "Tag Push Hook", "Note Hook"}
        assert all(handler.tracker is tracker for handler in engine.handlers.values())

    def test_unknown_kind(self, engine: EventEngine, chat: MagicMock, store: MagicMock) -> None:
        """Test that unsupported events are acknowledged and ignored."""
        engine.handle_event("Pipeline Hook", b'{"object_kind": "pipeline"}')
        engine.handle_event("", b"")

        chat.post_message.assert_not_called()
        assert not store.method_calls

    def test_malformed_body(self, engine: EventEngine) -> None:
        """Test that a body that is not JSON never reaches the handler."""
        handler = engine.handlers["Issue Hook"]

        with patch.object(handler, "handle") as handle:
            engine.handle_event("Issue Hook", b"not json at all")
            engine.handle_event("Issue Hook", b'{"project": "not an object"}')

        handle.assert_not_called()

    def test_bytes_body(self, engine: EventEngine, chat: MagicMock) -> None:
        """Test that raw request bytes are accepted."""
        engine.handle_event("Issue Hook", issue_body().encode("utf-8"))

        chat.post_message.assert_called_once()

    def test_store_failure_swallowed(self, engine: EventEngine, store: MagicMock,
                                     chat: MagicMock) -> None:
        """Test that backend errors abandon the event without raising."""
        store.get_user_by_id.side_effect = StoreError("database is locked")

        engine.handle_event("Issue Hook", issue_body())

        chat.post_message.assert_not_called()

    def test_unexpected_error_swallowed(self, engine: EventEngine, chat: MagicMock) -> None:
        """Test that a programming error in a handler does not escape."""
        chat.post_message.side_effect = KeyError("boom")

        engine.handle_event("Issue Hook", issue_body())
