"""
Exception hierarchy for Gitlack.

Lookups that match nothing raise ``NotFoundError``; anything that went wrong
talking to the database or an upstream API raises ``StoreError`` or
``RemoteError``. Callers rely on the distinction: not-found is an expected
branch, the others get logged.
"""

import json


class GitlackError(Exception):
    """Base class for all Gitlack errors."""


class NotFoundError(GitlackError):
    """A store lookup matched no row."""


class StoreError(GitlackError):
    """The database backend failed."""


class RemoteError(GitlackError):
    """An upstream HTTP call failed or returned a non-200 status."""


class SlackAPIError(RemoteError):
    """Slack accepted the request but answered ``ok: false``."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid Slack API: {reason}")
        self.reason = reason


class SyncError(GitlackError):
    """
    Some entities failed to persist during a sync.

    The message is the JSON array of the identifiers that failed, which is
    also what the administrative API hands back to its caller.
    """

    def __init__(self, failed: list[str]) -> None:
        super().__init__(json.dumps(failed))
        self.failed = failed


class ConfigError(GitlackError):
    """Required settings are missing or invalid."""


class MigrationError(GitlackError):
    """A schema migration could not be applied."""
