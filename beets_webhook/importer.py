"""Single-flight beets import followed by a Navidrome rescan trigger.

A task runs two stages in order:

1. ``beet import`` on the downloads directory.
2. ``POST`` to ``NAVIDROME_SCAN_URL``, only when stage 1 succeeded.

Admission is a non-blocking try-acquire on a lock: while a task is running,
new requests are rejected, never queued. The lock is released when the
task exits, whatever the outcome.

Shutdown does not wait for a running import. The ``beet`` process is left
running, and asyncio may print an unraisable "Event loop is closed" error
when it drops the orphaned subprocess transport. That message is expected.
"""

import asyncio
import logging
import threading
from typing import Optional, Sequence, Set

import aiohttp
from yarl import URL

from beets_webhook.config import (
    BEETS_IMPORT_COMMAND,
    SCAN_TRIGGER_TIMEOUT_SECONDS,
    ImportConfig,
)

logger = logging.getLogger(__name__)


def redact_url(url: str) -> str:
    """Strip the query string and user info, which may carry credentials."""
    try:
        return str(URL(url).with_user(None).with_query(None))
    except (TypeError, ValueError):
        return "<invalid url>"


class ImportRunner:
    """Runs the import-then-scan pipeline, at most one at a time."""

    def __init__(
        self,
        config: ImportConfig,
        command: Sequence[str] = BEETS_IMPORT_COMMAND,
    ):
        """Initialize the runner.

        Args:
            config: Import webhook configuration.
            command: Import command and arguments.
        """
        self.config = config
        self.command = list(command)
        self._lock = threading.Lock()
        # Strong references so the event loop does not drop running tasks
        self._tasks: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        """Whether a background task currently holds the lock."""
        return self._lock.locked()

    def try_start(self) -> bool:
        """Start a background task unless one is already running.

        Must be called from a running event loop. The task is not bound to
        the calling request and outlives it.

        Returns:
            True if a task was started, False if one is already in progress.
        """
        if not self._lock.acquire(blocking=False):
            return False

        try:
            task = asyncio.get_running_loop().create_task(self.run_task())
        except BaseException:
            self._lock.release()
            raise

        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return True

    def _on_task_done(self, task: asyncio.Task) -> None:
        # Runs on every exit path, including cancellation before the first step
        self._tasks.discard(task)
        self._lock.release()

    async def wait_idle(self) -> None:
        """Wait for running background tasks to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def run_task(self) -> None:
        """Run both stages. The admission lock is released when the task ends."""
        try:
            if not await self.run_import():
                return
            await self.trigger_scan()
        except Exception as e:
            logger.error(f"Import task crashed: {e}", exc_info=True)

    async def run_import(self) -> bool:
        """Run the beets import command, waiting as long as it takes.

        Returns:
            True if the command exited with status 0.
        """
        logger.info(f"Starting beet import: {' '.join(self.command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                stdin=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.error(f"Beets import failed: could not start {self.command[0]}: {e}")
            return False

        stdout, _ = await process.communicate()
        output = stdout.decode("utf-8", errors="replace") if stdout else ""

        if process.returncode != 0:
            logger.error(
                f"Beets import failed: exit status {process.returncode}\nOutput: {output}"
            )
            return False

        logger.info("Beets import finished successfully")
        return True

    async def trigger_scan(self) -> bool:
        """Ask Navidrome to rescan its library.

        A missing NAVIDROME_SCAN_URL is an intentional skip and counts as
        success. The response body is ignored.

        Returns:
            True if the scan was triggered or skipped, False on failure.
        """
        scan_url: Optional[str] = self.config.navidrome_scan_url
        if not scan_url:
            logger.warning("NAVIDROME_SCAN_URL not set. Skipping scan.")
            return True

        logger.info(f"Executing Navidrome scan: POST {redact_url(scan_url)}")

        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=SCAN_TRIGGER_TIMEOUT_SECONDS)
            ) as session:
                async with session.post(scan_url) as response:
                    if not 200 <= response.status < 300:
                        logger.error(
                            f"Navidrome API returned non-success status: "
                            f"{response.status} {response.reason}"
                        )
                        return False

        except asyncio.TimeoutError:
            logger.error(
                f"Navidrome scan request timed out after {SCAN_TRIGGER_TIMEOUT_SECONDS}s"
            )
            return False
        except (aiohttp.InvalidURL, ValueError):
            # The message would echo the URL and its credentials
            logger.error(f"Failed to create Navidrome request: invalid URL {redact_url(scan_url)}")
            return False
        except aiohttp.ClientError as e:
            logger.error(f"Navidrome scan request failed: {e}")
            return False

        logger.info("Navidrome scan launched successfully")
        return True
