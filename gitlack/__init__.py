"""
Gitlack - relays GitLab webhook events to Slack.

Issues, merge requests, tag pushes and comments are posted to a channel
chosen per event, with follow-ups threaded under the original message.
Users and projects are kept in sync between both platforms in a small
SQLite database.
"""

__version__ = "0.1.0"
