"""
Issue events: announce opened issues, reply when they close.
"""

from gitlack.channel import resolve_channel
from gitlack.core import EventHandler
from gitlack.logging_config import get_logger
from gitlack.models import Attachment, Issue
from gitlack.payloads import IssueEvent
from gitlack.registry import register_event

logger = get_logger(__name__)

OPEN_TEMPLATE = "<@{author}> has opened <{link}|{path}#{num}>"
CLOSED_TEXT = "This issue has been closed."


@register_event("Issue Hook")
class IssueHandler(EventHandler):
    """
    Handles ``Issue Hook`` events.

    ``open`` and ``reopen`` post a new message and remember its thread;
    ``close`` replies in that thread.
    """

    payload_model = IssueEvent

    def handle(self, event: IssueEvent) -> None:
        action = event.object_attributes.action
        if action in ("open", "reopen"):
            self.announce(event)
        elif action == "close":
            self.close(event)
        else:
            logger.info("Ignoring issue action %r", action)

    def announce(self, event: IssueEvent) -> None:
        attrs = event.object_attributes
        author = self.store.get_user_by_id(attrs.author_id)
        channel = resolve_channel(self.store, attrs.description, event.project.id, author)

        text = OPEN_TEMPLATE.format(
            author=author.mention(),
            link=attrs.url or "",
            path=event.project.path_with_namespace,
            num=attrs.iid
        )
        attachment = Attachment(title=attrs.title or "", text=attrs.description or "")
        response = self.chat.post_message(channel, text, author=author, attachment=attachment)

        self.store.create_issue(Issue(
            project_id=event.project.id,
            issue_num=attrs.iid,
            thread_ts=response.ts,
            channel=response.channel or channel
        ))
        logger.info("Announced issue %s#%s in %s", event.project.path_with_namespace, attrs.iid, channel)

    def close(self, event: IssueEvent) -> None:
        thread = self.store.get_issue(event.project.id, event.object_attributes.iid)
        self.chat.post_message(thread.channel, CLOSED_TEXT, thread_ts=thread.thread_ts)


__all__ = ["IssueHandler"]
