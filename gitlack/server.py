"""
HTTP surface: the GitLab webhook endpoint and the administrative API.

Routes:
    POST /                                  GitLab webhook (always 200)
    GET  /api/user/<email>                  show a user
    PUT  /api/user/<email>?default_channel= set a user's default channel
    POST /api/user                          sync users
    GET  /api/project/<namespace>/<path>    show a project
    PUT  /api/project/<namespace>/<path>?default_channel=
    POST /api/project                       sync projects
    PUT  /api/group/<namespace>?default_channel=
"""

import http.server
import json
import threading
from dataclasses import asdict
from typing import Any
from urllib.parse import parse_qs, unquote, urlsplit

from gitlack.core import Store
from gitlack.engine import EventEngine
from gitlack.errors import GitlackError, NotFoundError, SyncError
from gitlack.logging_config import get_logger
from gitlack.sync import Reconciler

logger = get_logger(__name__)

Response = tuple[int, dict[str, Any]]

SERVER_ERROR: Response = (500, {"ok": False, "error": "Server error"})


def invalid_channel(channel: str) -> Response:
    return 400, {"ok": False, "error": f'Invalid "default_channel": {json.dumps(channel)}'}


class AdminAPI:
    """
    Administrative operations, independent of the HTTP plumbing.

    Every method returns an (HTTP status, JSON body) pair.
    """

    def __init__(self, store: Store, reconciler: Reconciler) -> None:
        self.store = store
        self.reconciler = reconciler

    def get_user(self, email: str) -> Response:
        try:
            user = self.store.get_user_by_email(email)
        except NotFoundError:
            return 404, {"ok": False, "error": "User not found"}
        except GitlackError:
            return SERVER_ERROR
        return 200, {"ok": True, "user": asdict(user)}

    def update_user(self, email: str, channel: str) -> Response:
        if not channel:
            return invalid_channel(channel)
        status, body = self.get_user(email)
        if status != 200:
            return status, body
        try:
            self.store.update_user_default_channel(email, channel)
        except GitlackError:
            return SERVER_ERROR
        return 200, {"ok": True, "message": f"User: {email} updated"}

    def get_project(self, path: str) -> Response:
        try:
            project = self.store.get_project_by_path(path)
        except NotFoundError:
            return 404, {"ok": False, "error": "Project not found"}
        except GitlackError:
            return SERVER_ERROR
        return 200, {
            "ok": True,
            "project": {
                "gitlab_id": project.id,
                "name": project.name,
                "default_channel": project.default_channel,
            },
        }

    def update_project(self, path: str, channel: str) -> Response:
        if not channel:
            return invalid_channel(channel)
        status, body = self.get_project(path)
        if status != 200:
            return status, body
        try:
            self.store.update_project_default_channel(path, channel)
        except GitlackError:
            return SERVER_ERROR
        return 200, {"ok": True, "message": f"Project: {path} updated"}

    def update_group(self, prefix: str, channel: str) -> Response:
        if not channel:
            return invalid_channel(channel)
        try:
            self.store.update_group_default_channel(prefix, channel)
        except GitlackError:
            return SERVER_ERROR
        return 200, {"ok": True, "message": f"Group: {prefix} updated"}

    def sync_users(self) -> Response:
        return self._sync(self.reconciler.sync_users, "All users are synchronized")

    def sync_projects(self) -> Response:
        return self._sync(self.reconciler.sync_projects, "All projects are synchronized")

    @staticmethod
    def _sync(run: Any, message: str) -> Response:
        try:
            run()
        except SyncError as e:
            return 500, {"ok": False, "error": str(e)}
        except GitlackError as e:
            logger.error("Sync failed: %s", e)
            return 500, {"ok": False, "error": str(e)}
        return 200, {"ok": True, "message": message}


def make_handler(engine: EventEngine, api: AdminAPI) -> type[http.server.BaseHTTPRequestHandler]:
    """Build a request handler class bound to an engine and an API."""

    class GitlackHandler(http.server.BaseHTTPRequestHandler):
        """Routes requests to the webhook engine or the administrative API."""

        def log_message(self, format: str, *args: Any) -> None:  # pylint: disable=redefined-builtin
            logger.debug("%s - %s", self.client_address[0], format % args)

        def _send(self, response: Response) -> None:
            status, body = response
            payload = json.dumps(body).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def _read_body(self) -> bytes:
            content_length = int(self.headers.get('Content-Length', 0) or 0)
            return self.rfile.read(content_length) if content_length > 0 else b''

        def _route(self) -> tuple[str, str]:
            parts = urlsplit(self.path)
            channel = parse_qs(parts.query).get("default_channel", [""])[0]
            return unquote(parts.path), channel

        def do_POST(self) -> None:
            path, _ = self._route()
            body = self._read_body()

            if path == "/":
                # GitLab ignores the response, so every webhook is acknowledged
                engine.handle_event(self.headers.get("X-Gitlab-Event", ""), body)
                self._send((200, {"ok": True}))
            elif path.rstrip("/") == "/api/user":
                self._send(api.sync_users())
            elif path.rstrip("/") == "/api/project":
                self._send(api.sync_projects())
            else:
                self._send((404, {"ok": False, "error": "Not found"}))

        def do_GET(self) -> None:
            path, _ = self._route()

            if path.startswith("/api/user/"):
                self._send(api.get_user(path[len("/api/user/"):]))
            elif path.startswith("/api/project/"):
                self._send(api.get_project(path[len("/api/project/"):]))
            else:
                self._send((404, {"ok": False, "error": "Not found"}))

        def do_PUT(self) -> None:
            path, channel = self._route()
            self._read_body()

            if path.startswith("/api/user/"):
                self._send(api.update_user(path[len("/api/user/"):], channel))
            elif path.startswith("/api/project/"):
                self._send(api.update_project(path[len("/api/project/"):], channel))
            elif path.startswith("/api/group/"):
                self._send(api.update_group(path[len("/api/group/"):], channel))
            else:
                self._send((404, {"ok": False, "error": "Not found"}))

    return GitlackHandler


class GitlackServer:
    """Threaded HTTP server running in the background."""

    def __init__(
        self,
        engine: EventEngine,
        api: AdminAPI,
        host: str = "127.0.0.1",
        port: int = 5000
    ) -> None:
        self.engine = engine
        self.api = api
        self.host = host
        self.port = port
        self.server: http.server.ThreadingHTTPServer | None = None
        self.server_thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the HTTP server."""
        http.server.ThreadingHTTPServer.allow_reuse_address = True
        self.server = http.server.ThreadingHTTPServer(
            (self.host, self.port),
            make_handler(self.engine, self.api)
        )
        # Port 0 binds an ephemeral port
        self.port = self.server.server_address[1]

        self.server_thread = threading.Thread(
            target=self.server.serve_forever,
            daemon=True
        )
        self.server_thread.start()

        logger.info("HTTP server started on %s:%d", self.host, self.port)

    def stop(self) -> None:
        """Stop the HTTP server."""
        if self.server:
            self.server.shutdown()
            self.server.server_close()

            if self.server_thread:
                self.server_thread.join(timeout=5)

            logger.info("HTTP server stopped")
