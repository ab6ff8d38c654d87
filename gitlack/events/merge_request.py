"""
Merge request events: ask the assignee for review, follow the pipeline,
reply when the merge request is merged or closed.
"""

from gitlack.channel import resolve_channel
from gitlack.core import EventHandler
from gitlack.logging_config import get_logger
from gitlack.models import MergeRequest
from gitlack.payloads import MergeRequestEvent
from gitlack.registry import register_event

logger = get_logger(__name__)

REVIEW_TEMPLATE = (
    "<@{assignee}> you are assigned to review <{link}|{path}!{num}> by <@{author}>\n"
    "Title: {title}\n"
    "Action: request to merge `{source}` into `{target}`\n"
)


@register_event("Merge Request Hook")
class MergeRequestHandler(EventHandler):
    """Handles ``Merge Request Hook`` events."""

    payload_model = MergeRequestEvent

    def handle(self, event: MergeRequestEvent) -> None:
        action = event.object_attributes.action
        if action in ("open", "reopen"):
            self.announce(event)
        elif action in ("merge", "close"):
            self.close(event)
        else:
            logger.info("Ignoring merge request action %r", action)

    def announce(self, event: MergeRequestEvent) -> None:
        attrs = event.object_attributes
        assignee_id = attrs.assignee()
        if attrs.author_id == assignee_id:
            logger.info("Author and assignee of %s!%s are the same person",
                        event.project.path_with_namespace, attrs.iid)
            return

        author = self.store.get_user_by_id(attrs.author_id)
        assignee = self.store.get_user_by_id(assignee_id)
        channel = resolve_channel(self.store, attrs.description, event.project.id, assignee)

        text = REVIEW_TEMPLATE.format(
            assignee=assignee.mention(),
            author=author.mention(),
            link=attrs.url or "",
            path=event.project.path_with_namespace,
            num=attrs.iid,
            title=attrs.title or "",
            source=attrs.source_branch or "",
            target=attrs.target_branch or ""
        )
        response = self.chat.post_message(channel, text)

        self.store.create_merge_request(MergeRequest(
            project_id=event.project.id,
            merge_request_num=attrs.iid,
            thread_ts=response.ts,
            channel=response.channel or channel
        ))
        logger.info("Announced %s!%s in %s", event.project.path_with_namespace, attrs.iid, channel)

        if self.tracker is not None and attrs.last_commit is not None:
            # Pipelines for merge requests from forks run in the source project
            self.tracker.start(
                event.project.id,
                attrs.iid,
                attrs.last_commit.id,
                pipeline_project_id=attrs.source_project_id
            )

    def close(self, event: MergeRequestEvent) -> None:
        attrs = event.object_attributes
        thread = self.store.get_merge_request(event.project.id, attrs.iid)
        verb = "merged" if attrs.action == "merge" else "closed"
        self.chat.post_message(
            thread.channel,
            f"This merge request has been {verb}.",
            thread_ts=thread.thread_ts
        )


__all__ = ["MergeRequestHandler"]
