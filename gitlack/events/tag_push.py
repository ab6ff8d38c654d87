"""
Tag push events: announce new tags with their release notes.
"""

from gitlack.channel import resolve_channel
from gitlack.core import EventHandler
from gitlack.errors import NotFoundError
from gitlack.logging_config import get_logger
from gitlack.payloads import TagPushEvent
from gitlack.registry import register_event

logger = get_logger(__name__)

TAG_TEMPLATE = (
    "<@{author}> has pushed a new tag: <{link}|{tag}> to `{path}`!\n"
    "{note}\n"
)


@register_event("Tag Push Hook")
class TagPushHandler(EventHandler):
    """
    Handles ``Tag Push Hook`` events.

    Tags leave no thread behind, so nothing is persisted.
    """

    payload_model = TagPushEvent

    def handle(self, event: TagPushEvent) -> None:
        # A deleted tag arrives with a null checkout_sha
        if not event.checkout_sha:
            logger.info("Tag deleted in %s, nothing to announce", event.project.path_with_namespace)
            return

        author = self.store.get_user_by_id(event.user_id)
        channel = resolve_channel(self.store, event.message, event.project.id, author)

        tags = self.gitlab.list_tags(event.project.id)
        if not tags:
            raise NotFoundError(f"No tags in project #{event.project.id}")
        tag = tags[0]

        text = TAG_TEMPLATE.format(
            author=author.mention(),
            link=f"{event.project.web_url}/tags/{tag.name}",
            tag=tag.name,
            path=event.project.path_with_namespace,
            note=tag.release_note
        )
        self.chat.post_message(channel, text)
        logger.info("Announced tag %s of %s in %s", tag.name, event.project.path_with_namespace, channel)


__all__ = ["TagPushHandler"]
