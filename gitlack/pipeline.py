"""
CI pipeline tracker.

After a merge request is announced, a tracker polls the pipeline of its
last commit and replies in the merge request's thread if the pipeline
fails. Success and timeouts are silent.
"""

import threading
import time
from collections.abc import Callable

from gitlack.core import Chat, GitLab, Store
from gitlack.errors import GitlackError, NotFoundError
from gitlack.logging_config import get_logger

logger = get_logger(__name__)

TERMINAL_STATUSES = ("success", "failed")


class PipelineTracker:
    """
    Polls a commit's pipeline status on a background thread.

    Trackers share no state with each other; the only outcome of a run is
    the failure post, made through the chat adapter.
    """

    def __init__(  # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        store: Store,
        gitlab: GitLab,
        chat: Chat,
        max_attempts: int = 120,
        interval: float = 5.0,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        """
        Initialize the tracker.

        Args:
            store: Store holding merge request threads
            gitlab: GitLab adapter to poll
            chat: Slack adapter for the failure alert
            max_attempts: Number of polls before giving up
            interval: Seconds between polls
            sleep: Delay function (injectable for tests)
        """
        self.store = store
        self.gitlab = gitlab
        self.chat = chat
        self.max_attempts = max_attempts
        self.interval = interval
        self.sleep = sleep

    def start(
        self,
        project_id: int,
        mr_num: int,
        sha: str,
        pipeline_project_id: int | None = None
    ) -> threading.Thread:
        """
        Track a pipeline without blocking the caller.

        Args:
            project_id: Project the merge request belongs to
            mr_num: Merge request number (iid)
            sha: Last commit of the merge request
            pipeline_project_id: Project the pipeline runs in, if not project_id

        Returns:
            The started daemon thread
        """
        thread = threading.Thread(
            target=self.track,
            args=(project_id, mr_num, sha, pipeline_project_id),
            name=f"pipeline-{project_id}-{mr_num}",
            daemon=True
        )
        thread.start()
        return thread

    def wait_for_result(self, project_id: int, sha: str) -> tuple[str, int, str] | None:
        """
        Poll until the pipeline succeeds or fails.

        Returns:
            (status, pipeline id, pipeline url), or None if the attempt
            budget ran out first
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                pipeline = self.gitlab.get_commit_pipeline(project_id, sha)
            except GitlackError as e:
                logger.warning("Pipeline poll %d for %s failed: %s", attempt, sha[:8], e)
                pipeline = None

            if pipeline is not None and pipeline.status in TERMINAL_STATUSES:
                return pipeline.status, pipeline.id, pipeline.web_url

            if attempt < self.max_attempts:
                self.sleep(self.interval)

        logger.info("Gave up on pipeline for %s after %d polls", sha[:8], self.max_attempts)
        return None

    def track(
        self,
        project_id: int,
        mr_num: int,
        sha: str,
        pipeline_project_id: int | None = None
    ) -> bool:
        """
        Poll the pipeline and post an alert if it failed.

        Returns:
            True if a failure alert was posted
        """
        if not sha:
            logger.debug("No commit to track for %s!%s", project_id, mr_num)
            return False

        result = self.wait_for_result(pipeline_project_id or project_id, sha)
        if result is None:
            return False

        status, pipeline_id, url = result
        if status != "failed":
            logger.debug("Pipeline #%s succeeded", pipeline_id)
            return False

        try:
            thread = self.store.get_merge_request(project_id, mr_num)
        except NotFoundError:
            logger.info("Pipeline #%s failed but %s!%s has no thread", pipeline_id, project_id, mr_num)
            return False
        except GitlackError:
            logger.error("Cannot load thread for %s!%s", project_id, mr_num, exc_info=True)
            return False

        text = f"<{url}|Pipeline #{pipeline_id}> failed!"
        try:
            self.chat.post_message(thread.channel, text, thread_ts=thread.thread_ts)
        except GitlackError:
            logger.error("Failed to post pipeline alert for %s!%s", project_id, mr_num, exc_info=True)
            return False

        logger.info("Posted failure of pipeline #%s to %s", pipeline_id, thread.channel)
        return True
