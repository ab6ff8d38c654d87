"""
Event decision engine.

Turns one GitLab webhook into at most one Slack post (plus, for merge
requests, a detached pipeline tracker). Nothing raised while handling an
event reaches the caller: GitLab gets its acknowledgement regardless.
"""

from pydantic import ValidationError

# Import handler modules to trigger registration decorators
# pylint: disable=unused-import
from gitlack import events  # noqa: F401
from gitlack.core import Chat, EventHandler, GitLab, Store
from gitlack.errors import GitlackError, NotFoundError
from gitlack.logging_config import get_logger
from gitlack.pipeline import PipelineTracker
from gitlack.registry import EventRegistry, get_registry

logger = get_logger(__name__)


class EventEngine:
    """Dispatches webhook events to their registered handlers."""

    def __init__(  # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        store: Store,
        gitlab: GitLab,
        chat: Chat,
        tracker: PipelineTracker | None = None,
        registry: EventRegistry | None = None
    ) -> None:
        """
        Initialize the engine and one handler per registered event kind.

        Args:
            store: Persistence backend
            gitlab: GitLab adapter
            chat: Slack adapter
            tracker: Pipeline tracker (merge requests are not followed without one)
            registry: Handler registry (defaults to the global one)
        """
        registry = registry or get_registry()
        self.handlers: dict[str, EventHandler] = {
            kind: registry.get(kind)(store, gitlab, chat, tracker)
            for kind in registry.list_events()
        }

    def handle_event(self, event_kind: str, raw: bytes | str) -> None:
        """
        Process one webhook.

        Args:
            event_kind: Value of the ``X-Gitlab-Event`` header
            raw: Request body
        """
        handler = self.handlers.get(event_kind)
        if handler is None:
            logger.info("Event not supported: %s", event_kind)
            return

        try:
            event = handler.payload_model.model_validate_json(raw)
        except ValidationError as e:
            logger.error("Malformed %s payload: %s", event_kind, e)
            return

        try:
            handler.handle(event)
        except NotFoundError as e:
            logger.info("Dropped %s: %s", event_kind, e)
        except GitlackError:
            logger.error("Dropped %s", event_kind, exc_info=True)
        except Exception:
            logger.error("Unexpected error while handling %s", event_kind, exc_info=True)
