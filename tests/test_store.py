"""
Tests for the SQLite and in-memory stores.
"""

import sqlite3
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gitlack.core import Store
from gitlack.errors import MigrationError, NotFoundError, StoreError
from gitlack.models import Issue, MergeRequest, Project, User
from gitlack.store import MemoryStore, SQLiteStore, open_database
from gitlack.store.migrations import MIGRATIONS, current_version, migrate


@pytest.fixture(params=["sqlite", "memory"])
def any_store(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[Store]:
    """Each store implementation, empty."""
    if request.param == "sqlite":
        store = SQLiteStore.open(tmp_path / "db" / "gitlack.db")
        yield store
        store.close()
    else:
        yield MemoryStore()


class TestStoreSemantics:
    """Behaviour shared by every Store implementation."""

    def test_missing_rows(self, any_store: Store) -> None:
        """Test that every lookup on an empty store raises NotFoundError."""
        with pytest.raises(NotFoundError):
            any_store.get_project_by_id(1)
        with pytest.raises(NotFoundError):
            any_store.get_project_by_path("a/b")
        with pytest.raises(NotFoundError):
            any_store.get_user_by_id(1)
        with pytest.raises(NotFoundError):
            any_store.get_user_by_email("nobody")
        with pytest.raises(NotFoundError):
            any_store.get_merge_request(1, 1)
        with pytest.raises(NotFoundError):
            any_store.get_issue(1, 1)

    def test_user_upsert_keeps_default_channel(self, any_store: Store) -> None:
        """Test that re-creating a user refreshes fields but not its channel."""
        any_store.create_user(User(email="jane", gitlab_id=5, name="Jane"))
        any_store.update_user_default_channel("jane", "jane-chan")
        any_store.create_user(User(email="jane", gitlab_id=5, slack_id="U5", name="Jane Doe",
                                   avatar_url="http://a", default_channel="ignored"))

        assert any_store.get_user_by_id(5) == User(
            email="jane", gitlab_id=5, slack_id="U5", name="Jane Doe",
            avatar_url="http://a", default_channel="jane-chan"
        )
        assert any_store.get_user_by_email("jane").gitlab_id == 5

    def test_project_upsert_keeps_default_channel(self, any_store: Store) -> None:
        """Test that a renamed project keeps its channel."""
        any_store.create_project(Project(id=1, name="a/b"))
        any_store.update_project_default_channel("a/b", "chan")
        any_store.create_project(Project(id=1, name="a/renamed"))

        assert any_store.get_project_by_path("a/renamed") == Project(id=1, name="a/renamed",
                                                                    default_channel="chan")

    def test_thread_records_overwrite(self, any_store: Store) -> None:
        """Test that a second announcement replaces the stored thread."""
        any_store.create_merge_request(MergeRequest(project_id=1, merge_request_num=2,
                                                    thread_ts="1.0", channel="C1"))
        any_store.create_merge_request(MergeRequest(project_id=1, merge_request_num=2,
                                                    thread_ts="2.0", channel="C2"))
        any_store.create_issue(Issue(project_id=1, issue_num=2, thread_ts="3.0", channel="C3"))

        assert any_store.get_merge_request(1, 2) == MergeRequest(project_id=1, merge_request_num=2,
                                                                 thread_ts="2.0", channel="C2")
        assert any_store.get_issue(1, 2).thread_ts == "3.0"
        with pytest.raises(NotFoundError):
            any_store.get_issue(2, 2)

    def test_group_update_is_prefix_match(self, any_store: Store) -> None:
        """Test that a group update touches every project under the prefix."""
        for i, name in enumerate(["team/api", "team/web", "team-x/app", "other/team"]):
            any_store.create_project(Project(id=i, name=name))

        any_store.update_group_default_channel("team", "team-chan")

        assert any_store.get_project_by_id(0).default_channel == "team-chan"
        assert any_store.get_project_by_id(1).default_channel == "team-chan"
        # Literal prefix: "team-x" starts with "team" too
        assert any_store.get_project_by_id(2).default_channel == "team-chan"
        assert any_store.get_project_by_id(3).default_channel == ""

    def test_group_prefix_is_literal(self, any_store: Store) -> None:
        """Test that wildcard characters in the prefix match only themselves."""
        any_store.create_project(Project(id=1, name="my_group/app"))
        any_store.create_project(Project(id=2, name="myXgroup/app"))

        any_store.update_group_default_channel("my_group", "chan")

        assert any_store.get_project_by_id(1).default_channel == "chan"
        assert any_store.get_project_by_id(2).default_channel == ""

    def test_update_unknown_is_noop(self, any_store: Store) -> None:
        """Test that updating a missing user changes nothing and does not raise."""
        any_store.update_user_default_channel("ghost", "chan")

        with pytest.raises(NotFoundError):
            any_store.get_user_by_email("ghost")

    def test_returned_records_are_detached(self, any_store: Store) -> None:
        """Test that mutating a returned record does not change the store."""
        any_store.create_project(Project(id=1, name="a/b"))

        project = any_store.get_project_by_id(1)
        project.default_channel = "mutated"

        assert any_store.get_project_by_id(1).default_channel == ""


class TestSQLiteStore:
    """Tests specific to SQLiteStore."""

    def test_persists_across_connections(self, tmp_path: Path) -> None:
        """Test that data survives reopening the database file."""
        path = tmp_path / "gitlack.db"
        store = SQLiteStore.open(path)
        store.create_project(Project(id=1, name="a/b"))
        store.close()

        reopened = SQLiteStore.open(path)
        try:
            assert reopened.get_project_by_id(1).name == "a/b"
        finally:
            reopened.close()

    def test_backend_failure_is_store_error(self, tmp_path: Path) -> None:
        """Test that a broken connection raises StoreError, not NotFoundError."""
        store = SQLiteStore.open(tmp_path / "gitlack.db")
        store.close()

        with pytest.raises(StoreError):
            store.get_user_by_id(1)
        with pytest.raises(StoreError):
            store.create_project(Project(id=1, name="a/b"))

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """Test that the database directory is created on open."""
        path = tmp_path / "nested" / "dir" / "gitlack.db"

        SQLiteStore.open(path).close()

        assert path.exists()


class TestOpenDatabase:
    """Tests for open_database."""

    def test_in_memory(self) -> None:
        """Test opening a throwaway database."""
        conn = open_database(":memory:")

        assert conn.execute("SELECT 1").fetchone() == (1,)
        conn.close()

    def test_ping_retries_then_fails(self, tmp_path: Path) -> None:
        """Test that an unopenable database is retried, then reported."""
        sleep = MagicMock()

        # A directory cannot be opened as a database file
        with pytest.raises(StoreError, match="Database ping attempts failed"):
            open_database(tmp_path, attempts=3, interval=0.25, sleep=sleep)

        assert sleep.call_count == 2
        sleep.assert_called_with(0.25)


class TestMigrations:
    """Tests for schema migrations."""

    def test_fresh_database(self) -> None:
        """Test that every migration applies once."""
        conn = sqlite3.connect(":memory:")

        assert migrate(conn) == len(MIGRATIONS)
        assert current_version(conn) == MIGRATIONS[-1][0]
        assert migrate(conn) == 0

        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert {"Project", "User", "MergeRequest", "Issue", "schema_migrations"} <= tables
        conn.close()

    def test_versions_are_ordered(self) -> None:
        """Test that migration versions increase by one."""
        versions = [number for number, _, _ in MIGRATIONS]

        assert versions == list(range(1, len(MIGRATIONS) + 1))

    def test_failure_raises_migration_error(self) -> None:
        """Test that a failing migration is reported."""
        conn = sqlite3.connect(":memory:")
        # A view with a clashing name makes CREATE INDEX on it fail
        conn.execute("CREATE VIEW Project AS SELECT 1 AS id, '' AS name")

        with pytest.raises(MigrationError, match="1_create_project"):
            migrate(conn)
        conn.close()
