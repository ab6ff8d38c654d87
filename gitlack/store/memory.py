"""
In-memory store with the same semantics as the SQLite one.
"""

import threading
from dataclasses import replace

from gitlack.core import Store
from gitlack.errors import NotFoundError
from gitlack.models import Issue, MergeRequest, Project, User


class MemoryStore(Store):
    """Dict-backed store; returned records are copies."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.projects: dict[int, Project] = {}
        self.users: dict[int, User] = {}
        self.merge_requests: dict[tuple[int, int], MergeRequest] = {}
        self.issues: dict[tuple[int, int], Issue] = {}

    def get_project_by_path(self, path: str) -> Project:
        with self._lock:
            for project in self.projects.values():
                if project.name == path:
                    return replace(project)
        raise NotFoundError(f"Project {path!r} not found")

    def get_project_by_id(self, project_id: int) -> Project:
        with self._lock:
            if project_id in self.projects:
                return replace(self.projects[project_id])
        raise NotFoundError(f"Project #{project_id} not found")

    def get_user_by_email(self, email: str) -> User:
        with self._lock:
            for user in self.users.values():
                if user.email == email:
                    return replace(user)
        raise NotFoundError(f"User {email!r} not found")

    def get_user_by_id(self, gitlab_id: int) -> User:
        with self._lock:
            if gitlab_id in self.users:
                return replace(self.users[gitlab_id])
        raise NotFoundError(f"User #{gitlab_id} not found")

    def get_merge_request(self, project_id: int, mr_num: int) -> MergeRequest:
        with self._lock:
            if (project_id, mr_num) in self.merge_requests:
                return replace(self.merge_requests[(project_id, mr_num)])
        raise NotFoundError(f"MergeRequest {project_id}!{mr_num} not found")

    def get_issue(self, project_id: int, issue_num: int) -> Issue:
        with self._lock:
            if (project_id, issue_num) in self.issues:
                return replace(self.issues[(project_id, issue_num)])
        raise NotFoundError(f"Issue {project_id}#{issue_num} not found")

    def create_user(self, user: User) -> None:
        with self._lock:
            existing = self.users.get(user.gitlab_id)
            channel = existing.default_channel if existing else ""
            self.users[user.gitlab_id] = replace(user, default_channel=channel)

    def create_project(self, project: Project) -> None:
        with self._lock:
            existing = self.projects.get(project.id)
            channel = existing.default_channel if existing else ""
            self.projects[project.id] = replace(project, default_channel=channel)

    def create_merge_request(self, mr: MergeRequest) -> None:
        with self._lock:
            self.merge_requests[(mr.project_id, mr.merge_request_num)] = replace(mr)

    def create_issue(self, issue: Issue) -> None:
        with self._lock:
            self.issues[(issue.project_id, issue.issue_num)] = replace(issue)

    def update_user_default_channel(self, email: str, channel: str) -> None:
        with self._lock:
            for user in self.users.values():
                if user.email == email:
                    user.default_channel = channel

    def update_project_default_channel(self, name: str, channel: str) -> None:
        with self._lock:
            for project in self.projects.values():
                if project.name == name:
                    project.default_channel = channel

    def update_group_default_channel(self, prefix: str, channel: str) -> None:
        with self._lock:
            for project in self.projects.values():
                if project.name.startswith(prefix):
                    project.default_channel = channel
