"""
Slack Web API adapter.
"""

import json
from typing import Any, ClassVar

import requests

from gitlack.client import RemoteClient
from gitlack.core import Chat
from gitlack.errors import RemoteError, SlackAPIError
from gitlack.logging_config import get_logger
from gitlack.models import Attachment, MessageResponse, SlackUser, User

logger = get_logger(__name__)


class SlackAdapter(Chat):
    """
    Posts messages and lists members through the Slack Web API.

    Slack reports most failures as HTTP 200 with ``ok: false``; those raise
    ``SlackAPIError`` so callers can tell them apart from network trouble.
    """

    MAX_PAGES: ClassVar[int] = 100
    FORM_HEADERS: ClassVar[dict[str, str]] = {
        "Content-Type": "application/x-www-form-urlencoded",
    }

    def __init__(
        self,
        client: RemoteClient,
        token: str,
        domain: str = "slack.com",
        scheme: str = "https"
    ) -> None:
        self.client = client
        self.token = token
        self.api = f"{scheme}://{domain}/api"

    def _check(self, response: requests.Response) -> dict[str, Any]:
        if response.status_code != 200:
            message = f"Slack error: {response.text}"
            logger.error(message)
            raise RemoteError(message)
        try:
            body: dict[str, Any] = response.json()
        except ValueError as e:
            logger.error("Slack returned invalid JSON from %s", response.url)
            raise RemoteError(f"Slack error: {e}") from e
        if not body.get("ok"):
            error = SlackAPIError(body.get("error", "unknown_error"))
            logger.error(str(error))
            raise error
        return body

    def list_users(self) -> list[SlackUser]:
        params = {"token": self.token, "limit": "100"}
        users: list[SlackUser] = []

        for _ in range(self.MAX_PAGES):
            body = self._check(self.client.get(f"{self.api}/users.list", params=dict(params)))

            for member in body.get("members", []):
                if member.get("is_bot") or member.get("deleted"):
                    continue
                profile = member.get("profile") or {}
                users.append(SlackUser(
                    id=member["id"],
                    name=member.get("name", ""),
                    email=profile.get("email", ""),
                    avatar_url=profile.get("image_192", "")
                ))

            cursor = (body.get("response_metadata") or {}).get("next_cursor", "")
            if not cursor:
                break
            params["cursor"] = cursor
        else:
            logger.warning("Stopped paging users.list after %d requests", self.MAX_PAGES)

        return users

    def post_message(  # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        channel: str,
        text: str,
        author: User | None = None,
        attachment: Attachment | None = None,
        thread_ts: str | None = None,
    ) -> MessageResponse:
        payload = {
            "token": self.token,
            "channel": channel,
            "text": text,
        }
        if thread_ts:
            payload["thread_ts"] = thread_ts
        if author is not None:
            payload["as_user"] = "false"
            payload["username"] = author.name
            payload["icon_url"] = author.avatar_url
        if attachment is not None:
            payload["attachments"] = json.dumps([attachment.to_dict()])

        body = self._check(self.client.post(
            f"{self.api}/chat.postMessage",
            data=payload,
            headers=self.FORM_HEADERS
        ))
        logger.debug("Posted message to %s (ts=%s)", body.get("channel"), body.get("ts"))
        return MessageResponse(
            ok=True,
            channel=body.get("channel", channel),
            ts=body.get("ts", ""),
            raw=body
        )


__all__ = ["SlackAdapter"]
