"""
Main daemon entry point for Gitlack.
"""

import argparse
import signal
import sys
import time
from typing import Any

from gitlack.client import RemoteClient
from gitlack.config import Config, load_config
from gitlack.engine import EventEngine
from gitlack.logging_config import get_logger, setup_logging
from gitlack.pipeline import PipelineTracker
from gitlack.resources import GitLabAdapter, SlackAdapter
from gitlack.scheduler import DailyTrigger
from gitlack.server import AdminAPI, GitlackServer
from gitlack.store import SQLiteStore
from gitlack.sync import Reconciler

logger = get_logger(__name__)


class GitlackDaemon:
    """
    Wires the store, adapters, engine and HTTP server together.

    Every collaborator is built once here and handed to the components
    that need it.
    """

    def __init__(self, config: Config) -> None:
        """
        Initialize the daemon.

        Opening the store pings the database and applies migrations;
        failures there propagate and are fatal.

        Args:
            config: Validated configuration
        """
        self.config = config
        self.config.check_required()

        self.client = RemoteClient(timeout=config.request_timeout_seconds)
        self.gitlab = GitLabAdapter(
            self.client,
            token=config.gitlab.token,
            domain=config.gitlab.domain,
            scheme=config.gitlab.scheme
        )
        self.slack = SlackAdapter(
            self.client,
            token=config.slack.token,
            domain=config.slack.domain,
            scheme=config.slack.scheme
        )
        self.store = SQLiteStore.open(
            config.database.path,
            attempts=config.database.ping_attempts,
            interval=config.database.ping_interval_seconds
        )

        self.tracker = PipelineTracker(
            self.store,
            self.gitlab,
            self.slack,
            max_attempts=config.pipeline.max_attempts,
            interval=config.pipeline.interval_seconds
        )
        self.engine = EventEngine(self.store, self.gitlab, self.slack, tracker=self.tracker)
        self.reconciler = Reconciler(self.store, self.gitlab, self.slack)
        self.scheduler = DailyTrigger(self.reconciler.sync_all, at=config.sync.daily_at)
        self.server = GitlackServer(
            self.engine,
            AdminAPI(self.store, self.reconciler),
            host=config.server.host,
            port=config.server.port
        )
        self.running = False

    def start(self) -> None:
        """Start the daemon and block until stopped."""
        logger.info("Starting Gitlack daemon")

        self.scheduler.start()
        if self.config.sync.on_startup:
            self.reconciler.sync_all()

        self.server.start()
        self.running = True
        logger.info("Gitlack daemon running")

        # Keep the main thread alive
        try:
            while self.running:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Shutdown signal received")
            self.stop()

    def stop(self) -> None:
        """Stop the daemon. Pipeline trackers still polling are abandoned."""
        logger.info("Stopping Gitlack daemon")
        self.running = False

        self.server.stop()
        self.scheduler.stop()
        self.client.close()
        self.store.close()

        logger.info("Gitlack daemon stopped")


def main() -> None:
    """Entry point for the daemon."""
    parser = argparse.ArgumentParser(description="Gitlack GitLab-to-Slack relay")
    parser.add_argument(
        '--config',
        default=None,
        help='Path to configuration file (settings may also come from the environment)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--log-level',
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Log level (default: WARNING, DEBUG with --debug)'
    )
    parser.add_argument(
        '--log-file',
        help='Optional log file path (logs to console if not specified)'
    )
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(1)

    level = args.log_level or ("DEBUG" if args.debug or config.debug else "WARNING")
    setup_logging(level=level, log_file=args.log_file)

    try:
        daemon = GitlackDaemon(config)
    except Exception:
        logger.critical("Fatal error during startup", exc_info=True)
        sys.exit(1)

    def signal_handler(_sig: int, _frame: Any) -> None:
        logger.info("Shutdown signal received")
        daemon.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        daemon.start()
    except Exception:
        logger.critical("Fatal error", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
