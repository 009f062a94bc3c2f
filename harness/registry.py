from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from harness.models import OperationRecord, OperationState

logger = logging.getLogger(__name__)

Visitor = Callable[[int], Awaitable[None]]


class OperationRegistry:
    """Pending operations keyed by operation id.

    Every record held here is pending: resolving a record removes it in the
    same step, so a resolved operation can never be visited again.
    """

    def __init__(self) -> None:
        self._records: dict[int, OperationRecord] = {}
        self._lock = asyncio.Lock()

    async def insert(self, operation_id: int) -> OperationRecord:
        async with self._lock:
            if operation_id in self._records:
                raise RuntimeError(f"Operation {operation_id} already registered")
            record = OperationRecord(id=operation_id)
            self._records[operation_id] = record
            logger.debug("Operation registered: %d (%d pending)", operation_id, len(self._records))
            return record

    async def remove(self, operation_id: int) -> OperationRecord | None:
        """Resolve and drop a record. Returns None if it was already gone."""
        async with self._lock:
            record = self._records.pop(operation_id, None)
            if record is None:
                return None
            record.state = OperationState.resolved
            logger.debug("Operation resolved: %d (%d pending)", operation_id, len(self._records))
            return record

    def pending_ids(self) -> list[int]:
        return list(self._records)

    async def for_each_pending(self, visitor: Visitor, concurrency: int = 1) -> None:
        """Visit every pending operation once.

        Works on a snapshot of the ids, so the visitor may remove entries.
        Ids removed after the snapshot are skipped. A visitor that raises is
        logged and does not stop the other visits.
        """
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def visit(operation_id: int) -> None:
            async with semaphore:
                if operation_id not in self._records:
                    return
                try:
                    await visitor(operation_id)
                except Exception:
                    logger.exception("Visitor failed for operation %d", operation_id)

        await asyncio.gather(*(visit(op_id) for op_id in self.pending_ids()))

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    @property
    def size(self) -> int:
        return len(self._records)
