"""
Reconciliation of users and projects from GitLab and Slack into the store.

Runs at startup, once a day, and on demand through the administrative API.
Everything is an upsert, so overlapping runs converge.
"""

from collections import defaultdict

from gitlack.core import Chat, GitLab, Store
from gitlack.errors import GitlackError, SyncError
from gitlack.logging_config import get_logger
from gitlack.models import User

logger = get_logger(__name__)


def local_part(email: str) -> str:
    """Return the part of an address before the ``@``."""
    return email.split("@", 1)[0]


class Reconciler:
    """Full resync of users and projects."""

    def __init__(self, store: Store, gitlab: GitLab, chat: Chat) -> None:
        self.store = store
        self.gitlab = gitlab
        self.chat = chat

    def sync_projects(self) -> None:
        """
        Upsert every non-archived GitLab project.

        Raises:
            RemoteError: The project list could not be fetched
            SyncError: Some projects failed to persist (the rest are kept)
        """
        projects = self.gitlab.list_projects()
        failed: list[str] = []

        for project in projects:
            try:
                self.store.create_project(project)
            except GitlackError as e:
                logger.warning("Could not sync project %s: %s", project.name, e)
                failed.append(project.name)

        logger.info("Synchronized %d/%d project(s)", len(projects) - len(failed), len(projects))
        if failed:
            raise SyncError(failed)

    def join_users(self) -> list[User]:
        """
        Join GitLab and Slack users on the local part of their email.

        Every GitLab user yields a record, mapped to Slack or not; Slack
        members without a GitLab account are dropped.
        """
        gitlab_users = self.gitlab.list_users()
        slack_users = self.chat.list_users()

        joined: list[User] = []
        by_email: dict[str, list[User]] = defaultdict(list)
        for g in gitlab_users:
            user = User(email=local_part(g.email), gitlab_id=g.id, name=g.name)
            joined.append(user)
            if user.email:
                by_email[user.email].append(user)

        for s in slack_users:
            for user in by_email.get(local_part(s.email), []):
                user.slack_id = s.id
                user.avatar_url = s.avatar_url

        return joined

    def sync_users(self) -> None:
        """
        Upsert every GitLab user, joined with its Slack account if any.

        Raises:
            RemoteError: A user list could not be fetched
            SyncError: Some users failed to persist (the rest are kept)
        """
        users = self.join_users()
        failed: list[str] = []

        for user in users:
            try:
                self.store.create_user(user)
            except GitlackError as e:
                logger.warning("Could not sync user %s: %s", user.email, e)
                failed.append(user.email)

        logger.info("Synchronized %d/%d user(s)", len(users) - len(failed), len(users))
        if failed:
            raise SyncError(failed)

    def sync_all(self) -> bool:
        """
        Sync users, then projects, logging failures instead of raising.

        Returns:
            True if both syncs completed cleanly
        """
        ok = True
        for name, run in (("users", self.sync_users), ("projects", self.sync_projects)):
            try:
                run()
            except GitlackError as e:
                logger.error("Sync of %s failed: %s", name, e)
                ok = False
        return ok
