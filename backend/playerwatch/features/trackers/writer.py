"""Per-scope single-writer queue.

Foreground edits and background enrichment results both read the scope state,
change one tracker and write the whole state back. The state of a scope is
persisted as one document, so every such read-modify-write runs on a queue
owned by the scope: a write always sees the result of any write submitted
before it, whichever tracker that write changed.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

WriterKey = str
Mutation = Callable[[], Awaitable[Any]]


class TrackerWriteQueue:
    """Serializes mutations per scope.

    A worker task is started when the first mutation for a scope arrives and
    exits once that scope's queue is drained. ``tracker_id`` only labels the
    mutation in logs.
    """

    def __init__(self):
        self._queues: Dict[WriterKey, asyncio.Queue] = {}
        self._workers: Dict[WriterKey, asyncio.Task] = {}
        self.stats: Dict[str, int] = {"submitted": 0, "completed": 0, "failed": 0}

    async def submit(self, scope: str, tracker_id: str, mutation: Callable[[], Awaitable[T]]) -> T:
        """Run ``mutation`` after every mutation queued earlier for the scope.

        Exceptions raised by ``mutation`` are re-raised to the submitter.
        """
        key = scope
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        queue = self._queues.get(key)
        if queue is None:
            queue = asyncio.Queue()
            self._queues[key] = queue
        queue.put_nowait((mutation, future, tracker_id))
        self.stats["submitted"] += 1

        if key not in self._workers:
            self._workers[key] = asyncio.create_task(self._worker(key, queue))

        return await future

    async def _worker(self, key: WriterKey, queue: asyncio.Queue) -> None:
        try:
            while not queue.empty():
                mutation, future, tracker_id = queue.get_nowait()
                if future.cancelled():
                    continue
                try:
                    result = await mutation()
                except Exception as error:
                    self.stats["failed"] += 1
                    logger.error(
                        "Tracker mutation failed",
                        scope=key,
                        tracker_id=tracker_id,
                        error=str(error),
                        error_type=type(error).__name__,
                    )
                    if not future.cancelled():
                        future.set_exception(error)
                else:
                    self.stats["completed"] += 1
                    if not future.cancelled():
                        future.set_result(result)
        finally:
            self._workers.pop(key, None)
            if queue.empty():
                self._queues.pop(key, None)

    @property
    def active_writers(self) -> int:
        return len(self._workers)

    async def join(self) -> None:
        """Wait until every queued mutation has run."""
        while self._workers:
            await asyncio.gather(*list(self._workers.values()), return_exceptions=True)
