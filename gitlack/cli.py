"""
Gitlack CLI - Command line interface for administering the relay.

Provides commands for:
- Configuration validation
- Running the daemon in the foreground
- Database migration
- User and project synchronization
- Default channel management for users, projects and groups
"""

import argparse
import sys
from typing import Any

from gitlack.client import RemoteClient
from gitlack.config import Config, load_config
from gitlack.logging_config import get_logger, setup_logging
from gitlack.resources import GitLabAdapter, SlackAdapter
from gitlack.server import AdminAPI, Response
from gitlack.store import SQLiteStore
from gitlack.store.migrations import migrate
from gitlack.sync import Reconciler

logger = get_logger(__name__)


def _load(args: argparse.Namespace) -> Config | None:
    try:
        return load_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None


def _open_store(config: Config) -> SQLiteStore:
    return SQLiteStore.open(
        config.database.path,
        attempts=config.database.ping_attempts,
        interval=config.database.ping_interval_seconds
    )


def _api(config: Config, store: SQLiteStore) -> AdminAPI:
    client = RemoteClient(timeout=config.request_timeout_seconds)
    gitlab = GitLabAdapter(client, config.gitlab.token, config.gitlab.domain, config.gitlab.scheme)
    slack = SlackAdapter(client, config.slack.token, config.slack.domain, config.slack.scheme)
    return AdminAPI(store, Reconciler(store, gitlab, slack))


def _report(response: Response) -> int:
    status, body = response
    if body.get("ok"):
        print(f"✓ {body.get('message', 'OK')}")
        for key in ("user", "project"):
            if key in body:
                for field, value in body[key].items():
                    print(f"  {field}: {value}")
        return 0
    print(f"✗ {body.get('error')} (HTTP {status})", file=sys.stderr)
    return 1


def cmd_config_validate(args: argparse.Namespace) -> int:
    """Validate configuration file."""
    config = _load(args)
    if config is None:
        return 1

    try:
        config.check_required()
    except Exception as e:
        print(f"✗ Configuration invalid: {e}", file=sys.stderr)
        return 1

    print("✓ Configuration valid")
    print(f"  - GitLab: {config.gitlab.scheme}://{config.gitlab.domain}")
    print(f"  - Slack:  {config.slack.scheme}://{config.slack.domain}")
    print(f"  - Database: {config.database.path}")
    print(f"  - Listening on {config.server.host}:{config.server.port}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the daemon in the foreground."""
    from gitlack.daemon import GitlackDaemon

    config = _load(args)
    if config is None:
        return 1

    try:
        daemon = GitlackDaemon(config)
        daemon.start()
        return 0
    except KeyboardInterrupt:
        print("\nShutting down...")
        return 0
    except Exception as e:
        print(f"Error starting daemon: {e}", file=sys.stderr)
        return 1


def cmd_migrate(args: argparse.Namespace) -> int:
    """Apply pending database migrations."""
    from gitlack.store import open_database

    config = _load(args)
    if config is None:
        return 1

    try:
        conn = open_database(
            config.database.path,
            attempts=config.database.ping_attempts,
            interval=config.database.ping_interval_seconds
        )
        applied = migrate(conn)
        conn.close()
    except Exception as e:
        print(f"✗ Migration failed: {e}", file=sys.stderr)
        return 1

    print(f"✓ Applied {applied} migration(s) to {config.database.path}")
    return 0


def _with_api(args: argparse.Namespace, action: Any) -> int:
    config = _load(args)
    if config is None:
        return 1

    try:
        store = _open_store(config)
    except Exception as e:
        print(f"✗ Cannot open database: {e}", file=sys.stderr)
        return 1

    try:
        return action(_api(config, store))
    finally:
        store.close()


def cmd_sync(args: argparse.Namespace) -> int:
    """Synchronize users and/or projects from GitLab and Slack."""
    def run(api: AdminAPI) -> int:
        code = 0
        if args.target in ("users", "all"):
            code |= _report(api.sync_users())
        if args.target in ("projects", "all"):
            code |= _report(api.sync_projects())
        return code

    return _with_api(args, run)


def cmd_user(args: argparse.Namespace) -> int:
    """Show a user or set its default channel."""
    if args.subcommand == "show":
        return _with_api(args, lambda api: _report(api.get_user(args.email)))
    return _with_api(args, lambda api: _report(api.update_user(args.email, args.channel)))


def cmd_project(args: argparse.Namespace) -> int:
    """Show a project or set its default channel."""
    if args.subcommand == "show":
        return _with_api(args, lambda api: _report(api.get_project(args.path)))
    return _with_api(args, lambda api: _report(api.update_project(args.path, args.channel)))


def cmd_group(args: argparse.Namespace) -> int:
    """Set the default channel of every project under a namespace."""
    return _with_api(args, lambda api: _report(api.update_group(args.namespace, args.channel)))


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gitlack",
        description="Gitlack - relay GitLab events to Slack"
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to configuration file (settings may also come from the environment)"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(dest="subcommand")
    config_subparsers.add_parser("validate", help="Validate configuration")

    subparsers.add_parser("serve", help="Run the daemon (foreground)")
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    sync_parser = subparsers.add_parser("sync", help="Synchronize users and projects")
    sync_parser.add_argument("target", choices=["users", "projects", "all"])

    user_parser = subparsers.add_parser("user", help="User management")
    user_subparsers = user_parser.add_subparsers(dest="subcommand")
    user_show = user_subparsers.add_parser("show", help="Show a user")
    user_show.add_argument("email", help="Local part of the user's email")
    user_set = user_subparsers.add_parser("set-channel", help="Set a user's default channel")
    user_set.add_argument("email", help="Local part of the user's email")
    user_set.add_argument("channel", help="Slack channel name")

    project_parser = subparsers.add_parser("project", help="Project management")
    project_subparsers = project_parser.add_subparsers(dest="subcommand")
    project_show = project_subparsers.add_parser("show", help="Show a project")
    project_show.add_argument("path", help="Project path with namespace")
    project_set = project_subparsers.add_parser("set-channel", help="Set a project's default channel")
    project_set.add_argument("path", help="Project path with namespace")
    project_set.add_argument("channel", help="Slack channel name")

    group_parser = subparsers.add_parser("group", help="Group management")
    group_subparsers = group_parser.add_subparsers(dest="subcommand")
    group_set = group_subparsers.add_parser(
        "set-channel",
        help="Set the default channel of every project under a namespace"
    )
    group_set.add_argument("namespace", help="Namespace prefix, e.g. 'group/'")
    group_set.add_argument("channel", help="Slack channel name")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level)

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "config":
        if args.subcommand == "validate":
            return cmd_config_validate(args)
        parser.print_help()
        return 0

    if args.command == "serve":
        return cmd_serve(args)

    if args.command == "migrate":
        return cmd_migrate(args)

    if args.command == "sync":
        return cmd_sync(args)

    if args.command in ("user", "project", "group"):
        if not args.subcommand:
            parser.print_help()
            return 0
        handler = {"user": cmd_user, "project": cmd_project, "group": cmd_group}[args.command]
        return handler(args)

    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())
