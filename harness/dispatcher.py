from __future__ import annotations

import asyncio
import logging

from harness.asr_client import ASRClient, ASRClientError, DecodeError
from harness.models import DispatchStats
from harness.registry import OperationRegistry

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 1000
MAX_CONCURRENCY = 64


def validate_round(iterations: int, concurrency: int) -> None:
    if not 1 <= iterations <= MAX_ITERATIONS:
        raise ValueError(f"iterations must be between 1 and {MAX_ITERATIONS}, got {iterations}")
    if not 1 <= concurrency <= MAX_CONCURRENCY:
        raise ValueError(f"concurrency must be between 1 and {MAX_CONCURRENCY}, got {concurrency}")


class SubmissionDispatcher:
    """Submits the same request ``iterations`` times, ``concurrency`` at a time.

    A fixed pool of worker tasks drains a queue of attempt tokens, so the
    number of outstanding submissions never exceeds ``concurrency``. Failed
    attempts are logged and dropped; accepted ones land in the registry.
    """

    def __init__(self, client: ASRClient, concurrency: int) -> None:
        self.client = client
        self.concurrency = concurrency
        self.stats = DispatchStats()
        self._in_flight = 0

    async def dispatch(self, body: bytes, iterations: int) -> OperationRegistry:
        validate_round(iterations, self.concurrency)
        self.stats = DispatchStats()
        self._in_flight = 0

        registry = OperationRegistry()
        queue: asyncio.Queue[int] = asyncio.Queue()
        for attempt in range(iterations):
            queue.put_nowait(attempt)

        workers = [
            asyncio.create_task(self._worker(queue, body, registry))
            for _ in range(min(self.concurrency, iterations))
        ]
        await asyncio.gather(*workers)

        logger.info(
            "Dispatch finished: attempts=%d accepted=%d failed=%d peak_in_flight=%d",
            self.stats.attempts,
            self.stats.accepted,
            self.stats.failed,
            self.stats.peak_in_flight,
        )
        return registry

    async def _worker(self, queue: asyncio.Queue[int], body: bytes, registry: OperationRegistry) -> None:
        while True:
            try:
                attempt = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            self._in_flight += 1
            self.stats.attempts += 1
            self.stats.peak_in_flight = max(self.stats.peak_in_flight, self._in_flight)
            try:
                await self._submit_once(attempt, body, registry)
            except Exception:
                logger.exception("Unexpected error in upload attempt %d", attempt)
                self.stats.failed += 1
            finally:
                self._in_flight -= 1
                queue.task_done()

    async def _submit_once(self, attempt: int, body: bytes, registry: OperationRegistry) -> None:
        try:
            operation_id = await self.client.submit(body)
        except DecodeError as exc:
            logger.warning("Failed to deserialize uploading response (attempt %d): %s", attempt, exc)
            self.stats.failed += 1
            return
        except ASRClientError as exc:
            logger.warning("Failed to upload the voice data (attempt %d): %s", attempt, exc)
            self.stats.failed += 1
            return

        try:
            await registry.insert(operation_id)
        except RuntimeError as exc:
            logger.warning("Dropping attempt %d: %s", attempt, exc)
            self.stats.failed += 1
            return
        self.stats.accepted += 1
