from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from common.schemas import (
    PROCESSING_COMPLETED,
    PROCESSING_STARTED,
    Alternative,
    FetchOperationResponse,
    Speaker,
    Transcription,
)

logger = logging.getLogger(__name__)


@dataclass
class MockOperation:
    id: int
    language_code: str
    beam_search: bool
    signal_bytes: int
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    started_mono: float = field(default_factory=time.monotonic)


class MockOperationStore:
    """Operations accepted by the mock service, finished after a fixed delay."""

    def __init__(self, processing_delay_s: float = 2.0) -> None:
        self.processing_delay_s = processing_delay_s
        self._operations: dict[int, MockOperation] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def create(self, language_code: str, beam_search: bool, signal_bytes: int) -> MockOperation:
        async with self._lock:
            op = MockOperation(
                id=next(self._ids),
                language_code=language_code,
                beam_search=beam_search,
                signal_bytes=signal_bytes,
            )
            self._operations[op.id] = op
            logger.info("Operation accepted: %d (%d bytes, %d stored)", op.id, signal_bytes, len(self._operations))
            return op

    def get(self, operation_id: int) -> MockOperation | None:
        return self._operations.get(operation_id)

    def status(self, op: MockOperation) -> FetchOperationResponse:
        elapsed = time.monotonic() - op.started_mono
        if elapsed < self.processing_delay_s:
            return FetchOperationResponse(
                id=op.id,
                language_code=op.language_code,
                beam_search=op.beam_search,
                processing_status=PROCESSING_STARTED,
                processing_started_at=op.started_at,
            )

        return FetchOperationResponse(
            id=op.id,
            language_code=op.language_code,
            beam_search=op.beam_search,
            processing_status=PROCESSING_COMPLETED,
            processing_started_at=op.started_at,
            processing_finished_at=datetime.now(timezone.utc),
            speakers=[Speaker(id=0, gender="unknown")],
            transcriptions=[
                Transcription(
                    time_start=0.0,
                    time_end=round(elapsed, 3),
                    speaker_id=0,
                    alternatives=[
                        Alternative(transcript=f"mock transcript for operation {op.id}", confidence=0.9)
                    ],
                )
            ],
        )

    @property
    def count(self) -> int:
        return len(self._operations)
