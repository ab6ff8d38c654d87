"""
Target channel resolution.

Issues, merge requests and tag pushes all pick their Slack channel the same
way, first non-empty wins:

1. a ``/gitlack: <channel>`` directive in the free text
2. the project's default channel
3. the actor's default channel
4. ``#general``
"""

import re

from gitlack.core import Store
from gitlack.logging_config import get_logger
from gitlack.models import User

logger = get_logger(__name__)

DIRECTIVE_PATTERN = re.compile(r"/gitlack:\s?\S+")
DIRECTIVE_PREFIX = "/gitlack:"
FALLBACK_CHANNEL = "general"


def parse_directive(text: str | None) -> str:
    """
    Extract the channel named by the first ``/gitlack:`` directive.

    Args:
        text: Description, commit or tag message (may be None)

    Returns:
        Channel name, or "" if the text holds no directive
    """
    if not text:
        return ""
    match = DIRECTIVE_PATTERN.search(text)
    if not match:
        return ""
    return match.group(0).replace(DIRECTIVE_PREFIX, "", 1).strip()


def resolve_channel(store: Store, text: str | None, project_id: int, actor: User) -> str:
    """
    Pick the channel a notification goes to.

    The project is only looked up when the text carries no directive.

    Args:
        store: Store holding project defaults
        text: Free text to scan for a directive
        project_id: GitLab id of the project the event belongs to
        actor: User whose default channel is the third choice

    Returns:
        Channel name

    Raises:
        NotFoundError: The project is unknown
        StoreError: The project lookup failed
    """
    channel = parse_directive(text)
    if channel:
        logger.debug("Channel %r taken from directive", channel)
        return channel

    project = store.get_project_by_id(project_id)
    if project.default_channel:
        return project.default_channel

    if actor.default_channel:
        return actor.default_channel

    return FALLBACK_CHANNEL
