"""
Ordered schema migrations for the SQLite store.

Each entry is applied once, in order, and recorded in ``schema_migrations``.
New migrations go at the end of the list with the next version number.
"""

import sqlite3
from datetime import datetime

from gitlack.errors import MigrationError
from gitlack.logging_config import get_logger

logger = get_logger(__name__)

MIGRATIONS: list[tuple[int, str, str]] = [
    (1, "create_project", """
CREATE TABLE IF NOT EXISTS Project (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    default_channel TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_project_name ON Project (name);
"""),
    (2, "create_user", """
CREATE TABLE IF NOT EXISTS User (
    gitlab_id INTEGER PRIMARY KEY,
    email TEXT NOT NULL DEFAULT '',
    slack_id TEXT NOT NULL DEFAULT '',
    name TEXT NOT NULL DEFAULT '',
    avatar_url TEXT NOT NULL DEFAULT '',
    default_channel TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_user_email ON User (email);
"""),
    (3, "create_merge_request", """
CREATE TABLE IF NOT EXISTS MergeRequest (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL,
    mr_num INTEGER NOT NULL,
    thread_ts TEXT NOT NULL DEFAULT '',
    channel TEXT NOT NULL DEFAULT '',
    UNIQUE (project_id, mr_num)
);
"""),
    (4, "create_issue", """
CREATE TABLE IF NOT EXISTS Issue (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL,
    issue_num INTEGER NOT NULL,
    thread_ts TEXT NOT NULL DEFAULT '',
    channel TEXT NOT NULL DEFAULT '',
    UNIQUE (project_id, issue_num)
);
"""),
]


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied migration version (0 for a fresh database)."""
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations ("
        "version INTEGER PRIMARY KEY, name TEXT NOT NULL, applied_at TEXT NOT NULL)"
    )
    row = conn.execute("SELECT MAX(version) FROM schema_migrations").fetchone()
    return int(row[0] or 0)


def migrate(conn: sqlite3.Connection) -> int:
    """
    Apply every pending migration.

    Args:
        conn: Open database connection

    Returns:
        Number of migrations applied (0 if already up to date)

    Raises:
        MigrationError: If any migration fails; earlier ones stay applied
    """
    try:
        version = current_version(conn)
    except sqlite3.Error as e:
        raise MigrationError(f"Cannot read schema version: {e}") from e

    logger.debug("Schema version: %d", version)
    applied = 0

    for number, name, sql in MIGRATIONS:
        if number <= version:
            continue

        logger.info("Applying migration %d_%s", number, name)
        try:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_migrations (version, name, applied_at) VALUES (?, ?, ?)",
                (number, name, datetime.now().isoformat())
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise MigrationError(f"Migration {number}_{name} failed: {e}") from e
        applied += 1

    if not applied:
        logger.info("Database schema is up to date")
    return applied
