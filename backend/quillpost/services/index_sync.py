"""
Quillpost Backend — Search Index Synchronizer
===============================================

What:  Mirrors committed primary-store writes into the search index.
How:   Every mutation is described as an IndexOperation (upsert or delete)
       and applied with tenacity retries. Two modes:

       inline  The operation is awaited inside the request. When all
               retries fail, SearchIndexError (503) reaches the client; the
               primary write stays committed.
       outbox  The operation is queued and applied by a background worker
               in submission order. Operations that exhaust their retries
               are kept in a bounded dead-letter list for reindexing.

Who:   One shared instance (index_synchronizer), used by every entity
       service. Started and stopped by the application lifespan.

Ordering:
    Within one process the outbox applies operations FIFO, so an upsert
    followed by a delete of the same id ends with the document absent.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from quillpost.config import settings
from quillpost.exceptions import SearchIndexError
from quillpost.search.repositories import SearchRepository

logger = logging.getLogger(__name__)

INLINE_MODE = "inline"
OUTBOX_MODE = "outbox"

UPSERT = "upsert"
DELETE = "delete"


@dataclass
class IndexOperation:
    """One pending change to the search index."""

    action: str
    repository: SearchRepository
    entity_id: int
    document: Optional[Dict[str, Any]] = None
    attempts: int = 0
    error: Optional[str] = None
    failed_at: Optional[datetime] = None

    def describe(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "index": self.repository.index,
            "entity_id": self.entity_id,
            "attempts": self.attempts,
            "error": self.error,
            "failed_at": self.failed_at.isoformat() if self.failed_at else None,
        }


class IndexSynchronizer:
    """Applies IndexOperations inline or through an in-process outbox."""

    def __init__(
        self,
        mode: Optional[str] = None,
        max_attempts: Optional[int] = None,
        min_wait: Optional[float] = None,
        max_wait: Optional[float] = None,
        max_failed: Optional[int] = None,
    ):
        self.mode = (mode or settings.search_sync_mode).lower()
        if self.mode not in (INLINE_MODE, OUTBOX_MODE):
            raise ValueError(f"Unknown index sync mode '{self.mode}'")
        self.max_attempts = max_attempts or settings.retry_max_attempts
        self.min_wait = settings.retry_min_wait if min_wait is None else min_wait
        self.max_wait = settings.retry_max_wait if max_wait is None else max_wait
        self._failed: Deque[IndexOperation] = deque(
            maxlen=max_failed or settings.search_outbox_max_failed
        )
        self._queue: "asyncio.Queue[IndexOperation]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None

    # ── Public API ────────────────────────────────────────────────────────

    async def upsert(self, repository: SearchRepository, document: Dict[str, Any]) -> None:
        await self.submit(IndexOperation(UPSERT, repository, document["id"], document))

    async def delete(self, repository: SearchRepository, entity_id: int) -> None:
        await self.submit(IndexOperation(DELETE, repository, entity_id))

    async def submit(self, operation: IndexOperation) -> None:
        """
        Apply (inline) or enqueue (outbox) one operation.

        Raises:
            SearchIndexError: inline mode only, after all retries failed.
        """
        if self.mode == INLINE_MODE:
            await self._apply_with_retry(operation)
            return
        self._ensure_worker()
        self._queue.put_nowait(operation)
        logger.debug(
            "Queued index %s for %s/%s (pending=%d)",
            operation.action,
            operation.repository.index,
            operation.entity_id,
            self.pending,
        )

    @property
    def pending(self) -> int:
        """Operations queued but not yet applied."""
        return self._queue.qsize()

    @property
    def failed(self) -> List[Dict[str, Any]]:
        """Dead-lettered operations, oldest first."""
        return [op.describe() for op in self._failed]

    # ── Worker Lifecycle ──────────────────────────────────────────────────

    def start(self) -> None:
        """Start the outbox worker. No-op in inline mode or if running."""
        if self.mode == OUTBOX_MODE:
            self._ensure_worker()

    async def drain(self) -> None:
        """Wait until every queued operation has been applied or dead-lettered."""
        if self.mode != OUTBOX_MODE:
            return
        self._ensure_worker()
        await self._queue.join()

    async def stop(self, timeout: float = 10.0) -> None:
        """Drain the queue (bounded by timeout) and cancel the worker."""
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self.drain(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Index outbox stopped with %d operations still pending", self.pending
            )
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="quillpost-index-outbox")
            logger.info("Index outbox worker started")

    async def _run(self) -> None:
        while True:
            operation = await self._queue.get()
            try:
                await self._apply_with_retry(operation)
            except SearchIndexError as e:
                self._dead_letter(operation, e)
            except Exception as e:
                logger.error("Unexpected index outbox error: %s", str(e), exc_info=True)
                self._dead_letter(operation, e)
            finally:
                self._queue.task_done()

    # ── Application ───────────────────────────────────────────────────────

    async def _apply_with_retry(self, operation: IndexOperation) -> None:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(SearchIndexError),
            stop=stop_after_attempt(self.max_attempts),
            # wait = min(max_wait, min_wait * 2^attempt) + uniform(0, min_wait)
            wait=wait_exponential(multiplier=self.min_wait, max=self.max_wait)
            + wait_random(0, self.min_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    operation.attempts += 1
                    await self._apply(operation)
        except SearchIndexError as e:
            logger.error(
                "Index %s for %s/%s failed after %d attempts: %s",
                operation.action,
                operation.repository.index,
                operation.entity_id,
                operation.attempts,
                e.message,
            )
            raise SearchIndexError(
                message="The record was saved but the search index could not be updated",
                context={**e.context, "action": operation.action, "attempts": operation.attempts},
            ) from e

    @staticmethod
    async def _apply(operation: IndexOperation) -> None:
        if operation.action == UPSERT:
            await operation.repository.save(operation.document)
        else:
            await operation.repository.delete_by_id(operation.entity_id)

    def _dead_letter(self, operation: IndexOperation, error: Exception) -> None:
        operation.error = getattr(error, "message", str(error))
        operation.failed_at = datetime.now(timezone.utc)
        self._failed.append(operation)
        logger.error(
            "Dead-lettered index %s for %s/%s (%d kept)",
            operation.action,
            operation.repository.index,
            operation.entity_id,
            len(self._failed),
        )

# ── Singleton Instance ────────────────────────────────────────────────────
index_synchronizer = IndexSynchronizer()
