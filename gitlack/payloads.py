"""
Webhook payload models.

Only the fields the relay reads are declared; everything else GitLab sends
is ignored. GitLab sends ``null`` for several string fields (a deleted tag
has a null ``checkout_sha``), so those are optional.
"""

from pydantic import BaseModel, ConfigDict, Field


class Payload(BaseModel):
    """Base for all payload models."""
    model_config = ConfigDict(extra="ignore")


class ProjectInfo(Payload):
    id: int = 0
    path_with_namespace: str = ""
    web_url: str = ""


class LastCommit(Payload):
    id: str = ""


class ObjectAttributes(Payload):
    """The ``object_attributes`` block shared by issue, MR and note events."""
    action: str | None = None
    title: str | None = None
    description: str | None = None
    url: str | None = None
    iid: int = 0
    author_id: int = 0
    assignee_id: int | None = None
    assignee_ids: list[int] = Field(default_factory=list)
    source_branch: str | None = None
    target_branch: str | None = None
    source_project_id: int | None = None
    last_commit: LastCommit | None = None
    note: str | None = None
    noteable_type: str | None = None

    def assignee(self) -> int:
        """Assignee id; newer GitLab versions only send ``assignee_ids``."""
        if self.assignee_id:
            return self.assignee_id
        if self.assignee_ids:
            return self.assignee_ids[0]
        return 0


class NoteableRef(Payload):
    iid: int = 0


class IssueEvent(Payload):
    object_attributes: ObjectAttributes = Field(default_factory=ObjectAttributes)
    project: ProjectInfo = Field(default_factory=ProjectInfo)


class MergeRequestEvent(Payload):
    object_attributes: ObjectAttributes = Field(default_factory=ObjectAttributes)
    project: ProjectInfo = Field(default_factory=ProjectInfo)


class NoteEvent(Payload):
    object_attributes: ObjectAttributes = Field(default_factory=ObjectAttributes)
    project: ProjectInfo = Field(default_factory=ProjectInfo)
    issue: NoteableRef | None = None
    merge_request: NoteableRef | None = None


class TagPushEvent(Payload):
    checkout_sha: str | None = None
    message: str | None = None
    user_id: int = 0
    project: ProjectInfo = Field(default_factory=ProjectInfo)
