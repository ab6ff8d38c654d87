"""
HTTP transport shared by the GitLab and Slack adapters.
"""

from typing import Any

import requests

from gitlack.errors import RemoteError
from gitlack.logging_config import get_logger

logger = get_logger(__name__)


class RemoteClient:
    """
    Thin wrapper around a ``requests.Session``.

    Transport failures are re-raised as ``RemoteError``; status codes are
    left to the adapters, which know how each API reports errors.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float | None = None
    ) -> None:
        """
        Initialize the client.

        Args:
            session: Session to reuse (a new one is created if omitted)
            timeout: Per-request timeout in seconds (None waits indefinitely)
        """
        self.session = session or requests.Session()
        self.timeout = timeout

    def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None
    ) -> requests.Response:
        """Send a GET request."""
        return self._request("GET", url, params=params, headers=headers)

    def post(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None
    ) -> requests.Response:
        """Send a form-encoded POST request."""
        return self._request("POST", url, params=params, headers=headers, data=data)

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise RemoteError(str(e)) from e

    def close(self) -> None:
        self.session.close()
