"""
Adapters for the upstream platforms Gitlack relays between.
"""

from gitlack.resources.gitlab import GitLabAdapter
from gitlack.resources.slack import SlackAdapter

__all__ = ["GitLabAdapter", "SlackAdapter"]
