"""
Pytest configuration and fixtures for Gitlack tests.
"""

from unittest.mock import MagicMock

import pytest

from gitlack.core import Chat, GitLab
from gitlack.engine import EventEngine
from gitlack.models import MessageResponse, Project, User
from gitlack.pipeline import PipelineTracker
from gitlack.store import MemoryStore

from webhooks import POSTED_CHANNEL, PROJECT_ID, PROJECT_PATH, THREAD_TS


@pytest.fixture
def memory_store() -> MemoryStore:
    """A store seeded with one project and three users."""
    store = MemoryStore()
    store.create_project(Project(id=PROJECT_ID, name=PROJECT_PATH))
    store.create_user(User(email="author", gitlab_id=2, slack_id="U-AUTHOR", name="Author",
                           avatar_url="https://fake.com/author.png"))
    store.create_user(User(email="assignee", gitlab_id=3, slack_id="U-ASSIGNEE", name="Assignee"))
    store.create_user(User(email="ghost", gitlab_id=4, name="Ghost Writer"))
    return store


@pytest.fixture
def store(memory_store: MemoryStore) -> MagicMock:
    """The seeded store wrapped in a mock that records every call."""
    return MagicMock(wraps=memory_store)


@pytest.fixture
def gitlab() -> MagicMock:
    return MagicMock(spec=GitLab)


@pytest.fixture
def chat() -> MagicMock:
    """Slack stand-in whose posts always succeed."""
    mock = MagicMock(spec=Chat)
    mock.post_message.return_value = MessageResponse(ok=True, channel=POSTED_CHANNEL, ts=THREAD_TS)
    return mock


@pytest.fixture
def tracker() -> MagicMock:
    return MagicMock(spec=PipelineTracker)


@pytest.fixture
def engine(store: MagicMock, gitlab: MagicMock, chat: MagicMock, tracker: MagicMock) -> EventEngine:
    return EventEngine(store, gitlab, chat, tracker=tracker)
