"""
Core interfaces for Gitlack.

The relay talks to three capabilities, each behind an abstract class so the
event engine can run against real services or in-memory stand-ins:
- Store: thread records, users and projects
- GitLab: the source-control platform API
- Chat: the Slack API

Event handlers plug into the engine through the ``EventHandler`` base.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel

from gitlack.models import (
    Attachment,
    CommitPipeline,
    GitLabUser,
    Issue,
    MergeRequest,
    MessageResponse,
    Project,
    SlackUser,
    Tag,
    User,
)

if TYPE_CHECKING:
    from gitlack.pipeline import PipelineTracker


class Store(ABC):
    """
    Persistence for projects, users and thread records.

    Lookups raise ``NotFoundError`` when no row matches and ``StoreError``
    when the backend fails. ``create_*`` methods are upserts on the natural
    key of each entity.
    """

    @abstractmethod
    def get_project_by_path(self, path: str) -> Project:
        raise NotImplementedError

    @abstractmethod
    def get_project_by_id(self, project_id: int) -> Project:
        raise NotImplementedError

    @abstractmethod
    def get_user_by_email(self, email: str) -> User:
        raise NotImplementedError

    @abstractmethod
    def get_user_by_id(self, gitlab_id: int) -> User:
        raise NotImplementedError

    @abstractmethod
    def get_merge_request(self, project_id: int, mr_num: int) -> MergeRequest:
        raise NotImplementedError

    @abstractmethod
    def get_issue(self, project_id: int, issue_num: int) -> Issue:
        raise NotImplementedError

    @abstractmethod
    def create_user(self, user: User) -> None:
        """Upsert on ``gitlab_id``; ``default_channel`` is left untouched."""
        raise NotImplementedError

    @abstractmethod
    def create_project(self, project: Project) -> None:
        """Upsert on ``id``; only the name is refreshed."""
        raise NotImplementedError

    @abstractmethod
    def create_merge_request(self, mr: MergeRequest) -> None:
        raise NotImplementedError

    @abstractmethod
    def create_issue(self, issue: Issue) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_user_default_channel(self, email: str, channel: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_project_default_channel(self, name: str, channel: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_group_default_channel(self, prefix: str, channel: str) -> None:
        """Apply to every project whose name starts with ``prefix``."""
        raise NotImplementedError


class GitLab(ABC):
    """GitLab REST API."""

    @abstractmethod
    def list_users(self) -> list[GitLabUser]:
        """All active users."""
        raise NotImplementedError

    @abstractmethod
    def list_projects(self) -> list[Project]:
        """All non-archived projects."""
        raise NotImplementedError

    @abstractmethod
    def list_tags(self, project_id: int) -> list[Tag]:
        """Tags of a project, most recent first."""
        raise NotImplementedError

    @abstractmethod
    def get_commit_pipeline(self, project_id: int, sha: str) -> CommitPipeline | None:
        """Latest pipeline of a commit, or None if it has none yet."""
        raise NotImplementedError


class Chat(ABC):
    """Slack Web API."""

    @abstractmethod
    def list_users(self) -> list[SlackUser]:
        """All human, non-deleted members."""
        raise NotImplementedError

    @abstractmethod
    def post_message(  # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        channel: str,
        text: str,
        author: User | None = None,
        attachment: Attachment | None = None,
        thread_ts: str | None = None,
    ) -> MessageResponse:
        """
        Post a message.

        Args:
            channel: Channel name or id
            text: Message text in Slack markup
            author: Post under this user's name and avatar instead of the bot
            attachment: Optional single attachment
            thread_ts: Reply in the thread started by this message

        Returns:
            MessageResponse with the channel id and timestamp of the post

        Raises:
            SlackAPIError: Slack rejected the call
            RemoteError: transport failure or non-200 status
        """
        raise NotImplementedError


class EventHandler(ABC):
    """
    Base class for webhook event handlers.

    One handler exists per GitLab event kind. A handler abandons its event
    by raising a ``GitlackError``; the engine logs it and moves on.
    """

    payload_model: ClassVar[type[BaseModel]]

    def __init__(
        self,
        store: Store,
        gitlab: GitLab,
        chat: Chat,
        tracker: "PipelineTracker | None" = None
    ) -> None:
        """
        Initialize the handler with its collaborators.

        Args:
            store: Persistence backend
            gitlab: GitLab adapter
            chat: Slack adapter
            tracker: Pipeline tracker for handlers that watch CI
        """
        self.store = store
        self.gitlab = gitlab
        self.chat = chat
        self.tracker = tracker

    @abstractmethod
    def handle(self, event: Any) -> None:
        """
        Process one webhook event.

        Args:
            event: Instance of ``payload_model`` parsed from the request body
        """
        raise NotImplementedError
