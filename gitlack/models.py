"""
Data structures shared across Gitlack.

The first four classes are the persisted entities; the rest are the value
types the GitLab and Slack adapters hand back.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Project:
    """A GitLab project, keyed by its GitLab id."""
    id: int
    name: str  # path with namespace, e.g. "group/subgroup/repo"
    default_channel: str = ""


@dataclass
class User:
    """A GitLab account joined to a Slack account."""
    email: str  # local part only
    gitlab_id: int
    slack_id: str = ""
    name: str = ""
    avatar_url: str = ""
    default_channel: str = ""

    def mention(self) -> str:
        """Slack id if the user is mapped, GitLab display name otherwise."""
        return self.slack_id or self.name


@dataclass
class MergeRequest:
    """Thread record for a merge request."""
    project_id: int
    merge_request_num: int
    thread_ts: str
    channel: str


@dataclass
class Issue:
    """Thread record for an issue."""
    project_id: int
    issue_num: int
    thread_ts: str
    channel: str


@dataclass
class GitLabUser:
    id: int
    email: str
    name: str


@dataclass
class SlackUser:
    id: str
    name: str
    email: str
    avatar_url: str = ""


@dataclass
class Tag:
    name: str
    release_note: str = ""


@dataclass
class CommitPipeline:
    """Latest pipeline of a single commit."""
    id: int
    status: str
    web_url: str = ""


@dataclass
class Attachment:
    """A single Slack message attachment."""
    title: str
    text: str
    color: str = "#FF5511"

    def to_dict(self) -> dict[str, str]:
        return {"color": self.color, "title": self.title, "text": self.text}


@dataclass
class MessageResponse:
    """What Slack returns for a successful chat.postMessage."""
    ok: bool
    channel: str
    ts: str
    raw: dict[str, Any] = field(default_factory=dict)
