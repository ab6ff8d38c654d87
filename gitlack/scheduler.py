"""
Daily trigger for the reconciliation sync.
"""

import threading
from collections.abc import Callable
from datetime import datetime, time, timedelta

from gitlack.logging_config import get_logger

logger = get_logger(__name__)


def parse_time_of_day(value: str) -> time:
    """Parse "HH:MM" into a ``datetime.time``."""
    hours, _, minutes = value.partition(":")
    return time(hour=int(hours), minute=int(minutes or 0))


def seconds_until(at: time, now: datetime) -> float:
    """Seconds from ``now`` until the next occurrence of ``at``."""
    target = datetime.combine(now.date(), at)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class DailyTrigger:
    """
    Calls a function once a day at a fixed local time.

    Config:
        at: Time of day as "HH:MM" (default "00:00", i.e. midnight)
    """

    def __init__(
        self,
        callback: Callable[[], object],
        at: str = "00:00",
        clock: Callable[[], datetime] = datetime.now
    ) -> None:
        self.callback = callback
        self.at = parse_time_of_day(at)
        self.clock = clock
        self.thread: threading.Thread | None = None
        self.stop_event: threading.Event = threading.Event()

    def start(self) -> None:
        """Start the scheduler thread."""

        def run() -> None:
            while True:
                delay = seconds_until(self.at, self.clock())
                logger.debug("Next scheduled sync in %.0fs", delay)
                if self.stop_event.wait(delay):
                    return
                try:
                    self.callback()
                except Exception:
                    logger.error("Scheduled sync failed", exc_info=True)

        self.stop_event.clear()
        self.thread = threading.Thread(target=run, name="daily-sync", daemon=True)
        self.thread.start()
        logger.info("Daily sync scheduled at %s", self.at.strftime("%H:%M"))

    def stop(self) -> None:
        """Stop the scheduler thread."""
        if self.thread:
            self.stop_event.set()
            self.thread.join(timeout=5)
