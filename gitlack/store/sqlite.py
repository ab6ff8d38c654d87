"""
SQLite-backed store.
"""

import sqlite3
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from gitlack.core import Store
from gitlack.errors import NotFoundError, StoreError
from gitlack.logging_config import get_logger
from gitlack.models import Issue, MergeRequest, Project, User
from gitlack.store.migrations import migrate

logger = get_logger(__name__)


def open_database(
    path: str | Path,
    attempts: int = 30,
    interval: float = 1.0,
    sleep: Callable[[float], None] = time.sleep
) -> sqlite3.Connection:
    """
    Open the database and wait until it answers a ping.

    Args:
        path: SQLite file path (":memory:" for a throwaway database)
        attempts: Number of pings before giving up
        interval: Seconds between pings
        sleep: Delay function (injectable for tests)

    Returns:
        Open connection, usable from any thread

    Raises:
        StoreError: If every ping failed
    """
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    logger.debug("Database file location: %s", path)
    last_error: Exception | None = None

    for attempt in range(1, attempts + 1):
        try:
            conn = sqlite3.connect(str(path), check_same_thread=False)
            conn.execute("SELECT 1")
            return conn
        except sqlite3.Error as e:
            last_error = e
            logger.info("Database ping failed (attempt %d/%d), retry in %ss", attempt, attempts, interval)
            if attempt < attempts:
                sleep(interval)

    raise StoreError(f"Database ping attempts failed: {last_error}")


class SQLiteStore(Store):
    """
    Store implementation on a single shared SQLite connection.

    The connection is guarded by a lock so request threads, the pipeline
    tracker and the sync scheduler can share it.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()

    @classmethod
    def open(
        cls,
        path: str | Path,
        attempts: int = 30,
        interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep
    ) -> "SQLiteStore":
        """Open, ping and migrate the database at ``path``."""
        conn = open_database(path, attempts=attempts, interval=interval, sleep=sleep)
        migrate(conn)
        return cls(conn)

    def close(self) -> None:
        with self._lock:
            self.conn.close()

    def _fetch_one(self, sql: str, params: tuple[Any, ...], what: str) -> sqlite3.Row:
        try:
            with self._lock:
                row = self.conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            logger.error("Query for %s failed: %s", what, e)
            raise StoreError(str(e)) from e
        if row is None:
            logger.debug("%s not found", what)
            raise NotFoundError(f"{what} not found")
        return row

    def _execute(self, sql: str, params: tuple[Any, ...] | dict[str, Any], what: str) -> int:
        try:
            with self._lock:
                cursor = self.conn.execute(sql, params)
                self.conn.commit()
                return cursor.rowcount
        except sqlite3.Error as e:
            logger.error("%s failed: %s", what, e)
            raise StoreError(str(e)) from e

    @staticmethod
    def _project(row: sqlite3.Row) -> Project:
        return Project(id=row["id"], name=row["name"], default_channel=row["default_channel"])

    @staticmethod
    def _user(row: sqlite3.Row) -> User:
        return User(
            email=row["email"],
            gitlab_id=row["gitlab_id"],
            slack_id=row["slack_id"],
            name=row["name"],
            avatar_url=row["avatar_url"],
            default_channel=row["default_channel"]
        )

    def get_project_by_path(self, path: str) -> Project:
        row = self._fetch_one("SELECT * FROM Project WHERE name = ?", (path,), f"Project {path!r}")
        return self._project(row)

    def get_project_by_id(self, project_id: int) -> Project:
        row = self._fetch_one("SELECT * FROM Project WHERE id = ?", (project_id,), f"Project #{project_id}")
        return self._project(row)

    def get_user_by_email(self, email: str) -> User:
        row = self._fetch_one("SELECT * FROM User WHERE email = ?", (email,), f"User {email!r}")
        return self._user(row)

    def get_user_by_id(self, gitlab_id: int) -> User:
        row = self._fetch_one("SELECT * FROM User WHERE gitlab_id = ?", (gitlab_id,), f"User #{gitlab_id}")
        return self._user(row)

    def get_merge_request(self, project_id: int, mr_num: int) -> MergeRequest:
        row = self._fetch_one(
            "SELECT * FROM MergeRequest WHERE project_id = ? AND mr_num = ?",
            (project_id, mr_num),
            f"MergeRequest {project_id}!{mr_num}"
        )
        return MergeRequest(
            project_id=row["project_id"],
            merge_request_num=row["mr_num"],
            thread_ts=row["thread_ts"],
            channel=row["channel"]
        )

    def get_issue(self, project_id: int, issue_num: int) -> Issue:
        row = self._fetch_one(
            "SELECT * FROM Issue WHERE project_id = ? AND issue_num = ?",
            (project_id, issue_num),
            f"Issue {project_id}#{issue_num}"
        )
        return Issue(
            project_id=row["project_id"],
            issue_num=row["issue_num"],
            thread_ts=row["thread_ts"],
            channel=row["channel"]
        )

    def create_user(self, user: User) -> None:
        self._execute(
            """
            INSERT INTO User (gitlab_id, email, slack_id, name, avatar_url)
            VALUES (:gitlab_id, :email, :slack_id, :name, :avatar_url)
            ON CONFLICT(gitlab_id) DO UPDATE SET
                email = :email, slack_id = :slack_id, name = :name, avatar_url = :avatar_url
            """,
            {
                "gitlab_id": user.gitlab_id,
                "email": user.email,
                "slack_id": user.slack_id,
                "name": user.name,
                "avatar_url": user.avatar_url,
            },
            f"CreateUser {user.email!r}"
        )

    def create_project(self, project: Project) -> None:
        self._execute(
            """
            INSERT INTO Project (id, name) VALUES (:id, :name)
            ON CONFLICT(id) DO UPDATE SET name = :name
            """,
            {"id": project.id, "name": project.name},
            f"CreateProject {project.name!r}"
        )

    def create_merge_request(self, mr: MergeRequest) -> None:
        self._execute(
            """
            INSERT INTO MergeRequest (project_id, mr_num, thread_ts, channel)
            VALUES (:project_id, :mr_num, :thread_ts, :channel)
            ON CONFLICT(project_id, mr_num) DO UPDATE SET thread_ts = :thread_ts, channel = :channel
            """,
            {
                "project_id": mr.project_id,
                "mr_num": mr.merge_request_num,
                "thread_ts": mr.thread_ts,
                "channel": mr.channel,
            },
            f"CreateMergeRequest {mr.project_id}!{mr.merge_request_num}"
        )

    def create_issue(self, issue: Issue) -> None:
        self._execute(
            """
            INSERT INTO Issue (project_id, issue_num, thread_ts, channel)
            VALUES (:project_id, :issue_num, :thread_ts, :channel)
            ON CONFLICT(project_id, issue_num) DO UPDATE SET thread_ts = :thread_ts, channel = :channel
            """,
            {
                "project_id": issue.project_id,
                "issue_num": issue.issue_num,
                "thread_ts": issue.thread_ts,
                "channel": issue.channel,
            },
            f"CreateIssue {issue.project_id}#{issue.issue_num}"
        )

    def update_user_default_channel(self, email: str, channel: str) -> None:
        self._execute(
            "UPDATE User SET default_channel = ? WHERE email = ?",
            (channel, email),
            f"UpdateUserDefaultChannel {email!r}"
        )

    def update_project_default_channel(self, name: str, channel: str) -> None:
        self._execute(
            "UPDATE Project SET default_channel = ? WHERE name = ?",
            (channel, name),
            f"UpdateProjectDefaultChannel {name!r}"
        )

    def update_group_default_channel(self, prefix: str, channel: str) -> None:
        # Literal prefix match; LIKE would treat "_" and "%" as wildcards.
        self._execute(
            "UPDATE Project SET default_channel = ? WHERE substr(name, 1, length(?)) = ?",
            (channel, prefix, prefix),
            f"UpdateGroupDefaultChannel {prefix!r}"
        )
