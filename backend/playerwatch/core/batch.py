"""Chunked lookups against id-keyed batch endpoints.

Steam's batch endpoints accept at most 100 ids per request. ``BatchClient``
splits an arbitrary id list into chunks, runs one lookup per chunk and merges
the resulting maps. A failing chunk only loses its own ids.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

import structlog

from .error_handling import call_external

logger = structlog.get_logger(__name__)

V = TypeVar("V")

Lookup = Callable[[List[str]], Awaitable[Optional[Dict[str, V]]]]

DEFAULT_CHUNK_SIZE = 100


class BatchClient:
    """Runs a batch lookup capability over chunks of ids."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: Optional[float] = 10.0,
        max_concurrency: int = 4,
    ):
        """
        Initialize batch client.

        Args:
            chunk_size: Maximum number of ids passed to one lookup call
            timeout: Seconds allowed per chunk call (None disables)
            max_concurrency: Maximum number of chunk calls in flight
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.chunk_size = chunk_size
        self.timeout = timeout
        self.max_concurrency = max_concurrency

    def chunks(self, ids: Iterable[str]) -> List[List[str]]:
        """Partition ids into chunks, dropping duplicates and keeping order."""
        unique = list(dict.fromkeys(ids))
        return [
            unique[start : start + self.chunk_size]
            for start in range(0, len(unique), self.chunk_size)
        ]

    async def run(
        self,
        ids: Iterable[str],
        lookup: Lookup[V],
        *,
        operation: str = "batch lookup",
    ) -> Dict[str, V]:
        """
        Look up all ids and merge the per-chunk results.

        Never raises for a failed chunk: it contributes an empty map.

        Args:
            ids: Ids to look up
            lookup: Capability mapping a chunk of ids to id -> value
            operation: Name used in log entries

        Returns:
            Merged id -> value map
        """
        chunks = self.chunks(ids)
        if not chunks:
            return {}

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def invoke(chunk: List[str]) -> Optional[Dict[str, V]]:
            return await lookup(chunk)

        async def run_chunk(index: int, chunk: List[str]) -> Dict[str, V]:
            async with semaphore:
                result = await call_external(
                    operation,
                    invoke(chunk),
                    default=None,
                    timeout=self.timeout,
                    chunk=index,
                    chunk_size=len(chunk),
                )
            if not result:
                return {}
            return result

        results = await asyncio.gather(
            *(run_chunk(index, chunk) for index, chunk in enumerate(chunks))
        )

        merged: Dict[str, V] = {}
        for result in results:
            merged.update(result)

        logger.debug(
            "Batch lookup completed",
            operation=operation,
            requested=sum(len(chunk) for chunk in chunks),
            chunks=len(chunks),
            resolved=len(merged),
        )
        return merged
