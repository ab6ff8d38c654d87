"""
GitLab REST API adapter.
"""

from typing import Any, ClassVar

import requests

from gitlack.client import RemoteClient
from gitlack.core import GitLab
from gitlack.errors import RemoteError
from gitlack.logging_config import get_logger
from gitlack.models import CommitPipeline, GitLabUser, Project, Tag

logger = get_logger(__name__)


class GitLabAdapter(GitLab):
    """
    Talks to the GitLab v4 API with a private token.

    List endpoints follow the ``X-Next-Page`` header, capped at
    ``MAX_PAGES`` requests in case the server never stops paging.
    """

    MAX_PAGES: ClassVar[int] = 100
    PER_PAGE: ClassVar[str] = "100"

    def __init__(
        self,
        client: RemoteClient,
        token: str,
        domain: str = "gitlab.com",
        scheme: str = "https"
    ) -> None:
        self.client = client
        self.token = token
        self.api = f"{scheme}://{domain}/api/v4"

    def _check(self, response: requests.Response) -> Any:
        if response.status_code != 200:
            message = f"GitLab error: {response.text}"
            logger.error(message)
            raise RemoteError(message)
        try:
            return response.json()
        except ValueError as e:
            logger.error("GitLab returned invalid JSON from %s", response.url)
            raise RemoteError(f"GitLab error: {e}") from e

    def _paginate(self, url: str, params: dict[str, str]) -> list[dict[str, Any]]:
        params = {"private_token": self.token, "per_page": self.PER_PAGE, **params}
        items: list[dict[str, Any]] = []

        for _ in range(self.MAX_PAGES):
            response = self.client.get(url, params=dict(params))
            items.extend(self._check(response))

            next_page = response.headers.get("X-Next-Page", "")
            if not next_page:
                break
            params["page"] = next_page
        else:
            logger.warning("Stopped paging %s after %d requests", url, self.MAX_PAGES)

        return items

    def list_users(self) -> list[GitLabUser]:
        """Active users; ``email`` is only visible to admin tokens."""
        raw = self._paginate(f"{self.api}/users", {"active": "true"})
        return [
            GitLabUser(id=u["id"], email=u.get("email") or "", name=u.get("name") or "")
            for u in raw
        ]

    def list_projects(self) -> list[Project]:
        raw = self._paginate(
            f"{self.api}/projects",
            {"archived": "false", "simple": "true"}
        )
        return [Project(id=p["id"], name=p["path_with_namespace"]) for p in raw]

    def list_tags(self, project_id: int) -> list[Tag]:
        response = self.client.get(
            f"{self.api}/projects/{project_id}/repository/tags",
            params={"private_token": self.token}
        )
        tags = []
        for t in self._check(response):
            release = t.get("release") or {}
            tags.append(Tag(name=t["name"], release_note=release.get("description") or ""))
        return tags

    def get_commit_pipeline(self, project_id: int, sha: str) -> CommitPipeline | None:
        response = self.client.get(
            f"{self.api}/projects/{project_id}/repository/commits/{sha}",
            params={"private_token": self.token}
        )
        pipeline = self._check(response).get("last_pipeline")
        if not pipeline:
            return None
        return CommitPipeline(
            id=pipeline["id"],
            status=pipeline.get("status") or "",
            web_url=pipeline.get("web_url") or ""
        )


__all__ = ["GitLabAdapter"]
