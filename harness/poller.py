from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from common.schemas import Transcription
from harness.asr_client import ASRClient, ASRClientError, DecodeError
from harness.models import PollSummary
from harness.registry import OperationRegistry

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[int, list[Transcription]], None]


class CompletionPoller:
    """Sweeps the registry until every operation is resolved.

    Status is not pushed by the service, so each pending operation is
    fetched once per sweep with ``interval_s`` between sweeps. Transport
    and HTTP failures leave the operation pending; a malformed body is
    terminal. With ``max_sweeps`` unset the loop has no bound: an
    operation the service never finishes keeps it running.
    """

    def __init__(
        self,
        client: ASRClient,
        interval_s: float = 1.0,
        max_sweeps: Optional[int] = None,
        sweep_concurrency: int = 16,
    ) -> None:
        self.client = client
        self.interval_s = interval_s
        self.max_sweeps = max_sweeps
        self.sweep_concurrency = sweep_concurrency

    async def poll_until_done(
        self,
        registry: OperationRegistry,
        on_complete: CompletionCallback,
    ) -> PollSummary:
        summary = PollSummary()

        while registry.size:
            if self.max_sweeps is not None and summary.sweeps >= self.max_sweeps:
                summary.abandoned = sorted(registry.pending_ids())
                logger.warning(
                    "Giving up after %d sweeps, %d operations still pending: %s",
                    summary.sweeps,
                    len(summary.abandoned),
                    summary.abandoned,
                )
                break
            if summary.sweeps:
                await asyncio.sleep(self.interval_s)

            summary.sweeps += 1
            await registry.for_each_pending(
                lambda op_id: self._poll_one(op_id, registry, on_complete, summary),
                concurrency=self.sweep_concurrency,
            )
            logger.info("Sweep %d done: %d operations pending", summary.sweeps, registry.size)

        return summary

    async def _poll_one(
        self,
        operation_id: int,
        registry: OperationRegistry,
        on_complete: CompletionCallback,
        summary: PollSummary,
    ) -> None:
        try:
            outcome = await self.client.fetch_status(operation_id)
        except DecodeError as exc:
            logger.error("Failed to deserialize operation %d state, dropping it: %s", operation_id, exc)
            if await registry.remove(operation_id) is not None:
                summary.failed.append(operation_id)
            return
        except ASRClientError as exc:
            logger.warning("Failed to fetch operation %d state: %s", operation_id, exc)
            summary.fetch_errors += 1
            return

        if not outcome.completed:
            return

        # removal wins the race, so the operation is reported once
        if await registry.remove(operation_id) is None:
            return
        summary.completed += 1
        try:
            on_complete(operation_id, outcome.transcriptions)
        except Exception:
            logger.exception("Failed to report operation %d", operation_id)
