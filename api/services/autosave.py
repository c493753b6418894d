"""Background mirroring of note collections to local storage."""

import asyncio
import contextlib
from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)


class AutoSaveQueue:
    """Queue of users whose collections need saving, drained by one worker.

    A user already waiting in the queue is not queued twice, so a burst of
    edits results in a single write.
    """

    def __init__(self, save: Callable[[str], None]):
        self.save = save
        self.queue: asyncio.Queue[str] = asyncio.Queue()
        self.pending: set[str] = set()
        self.worker_task: asyncio.Task | None = None
        self._running = False

    async def start_worker(self):
        """Start the save worker."""
        if self._running:
            logger.warning("autosave_worker_already_running")
            return

        self._running = True
        self.worker_task = asyncio.create_task(self._worker())
        logger.info("autosave_worker_started")

    async def stop_worker(self):
        """Flush outstanding saves and stop the worker."""
        if not self._running:
            return

        await self.wait_for_completion()
        self._running = False

        if self.worker_task:
            self.worker_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self.worker_task
            logger.info("autosave_worker_stopped")

    async def _worker(self):
        while self._running:
            try:
                user_id = await asyncio.wait_for(self.queue.get(), timeout=1.0)
            except TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            self.pending.discard(user_id)
            try:
                await asyncio.to_thread(self.save, user_id)
                logger.debug("autosave_completed", user_id=user_id)
            except Exception as e:
                logger.error("autosave_failed", user_id=user_id, error=str(e))
            finally:
                self.queue.task_done()

    def request_save(self, user_id: str):
        """Schedule a save of ``user_id``'s collection."""
        if user_id in self.pending:
            return
        self.pending.add(user_id)
        self.queue.put_nowait(user_id)
        logger.debug("autosave_requested", user_id=user_id, queue_size=self.queue.qsize())

    async def wait_for_completion(self):
        """Wait until every requested save has been written."""
        await self.queue.join()
