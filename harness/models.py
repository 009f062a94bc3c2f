"""Internal models for the dispatch-and-poll harness."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from common.schemas import Transcription


class OperationState(str, Enum):
    pending = "pending"
    resolved = "resolved"


@dataclass
class OperationRecord:
    id: int
    state: OperationState = OperationState.pending


@dataclass
class PollOutcome:
    completed: bool
    transcriptions: list[Transcription] = field(default_factory=list)


@dataclass
class DispatchStats:
    attempts: int = 0
    accepted: int = 0
    failed: int = 0
    peak_in_flight: int = 0


@dataclass
class PollSummary:
    sweeps: int = 0
    completed: int = 0
    fetch_errors: int = 0
    failed: list[int] = field(default_factory=list)
    abandoned: list[int] = field(default_factory=list)


@dataclass
class RoundResult:
    iterations: int
    concurrency: int
    dispatch: DispatchStats
    poll: PollSummary | None = None

    @property
    def uploaded(self) -> int:
        return self.dispatch.accepted
