"""
Note events: relay comments into the thread of their issue or merge request.
"""

from gitlack.core import EventHandler
from gitlack.logging_config import get_logger
from gitlack.payloads import NoteEvent
from gitlack.registry import register_event

logger = get_logger(__name__)

COMMENT_TEMPLATE = "{author} has <{link}|commented:>\n{note}"


@register_event("Note Hook")
class CommentHandler(EventHandler):
    """
    Handles ``Note Hook`` events on issues and merge requests.

    Comments on commits and snippets are ignored.
    """

    payload_model = NoteEvent

    def handle(self, event: NoteEvent) -> None:
        noteable_type = event.object_attributes.noteable_type
        if noteable_type == "Issue":
            self.on_issue(event)
        elif noteable_type == "MergeRequest":
            self.on_merge_request(event)
        else:
            logger.info("Comment type not supported: %s", noteable_type)

    def _text(self, author_name: str, event: NoteEvent) -> str:
        attrs = event.object_attributes
        return COMMENT_TEMPLATE.format(author=author_name, link=attrs.url or "", note=attrs.note or "")

    def on_issue(self, event: NoteEvent) -> None:
        author = self.store.get_user_by_id(event.object_attributes.author_id)
        num = event.issue.iid if event.issue else 0
        thread = self.store.get_issue(event.project.id, num)
        self.chat.post_message(
            thread.channel,
            self._text(author.name, event),
            author=author,
            thread_ts=thread.thread_ts
        )

    def on_merge_request(self, event: NoteEvent) -> None:
        author = self.store.get_user_by_id(event.object_attributes.author_id)
        num = event.merge_request.iid if event.merge_request else 0
        thread = self.store.get_merge_request(event.project.id, num)
        self.chat.post_message(thread.channel, self._text(author.name, event), thread_ts=thread.thread_ts)


__all__ = ["CommentHandler"]
