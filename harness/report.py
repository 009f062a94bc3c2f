from __future__ import annotations

from common.schemas import Transcription
from harness.models import RoundResult


def format_result(operation_id: int, transcriptions: list[Transcription]) -> str:
    lines = [f"Voice ID: {operation_id}"]
    for seg in transcriptions:
        lines.append(f"\t{seg.time_start:f}-{seg.time_end:f}\t{seg.best_transcript}")
    return "\n".join(lines)


def print_result(operation_id: int, transcriptions: list[Transcription]) -> None:
    print(format_result(operation_id, transcriptions))


def format_round_summary(result: RoundResult) -> str:
    parts = [
        f"Round finished: {result.uploaded}/{result.iterations} uploaded "
        f"(concurrency {result.concurrency}, peak {result.dispatch.peak_in_flight})"
    ]
    if result.poll is not None:
        poll = result.poll
        parts.append(
            f"{poll.completed} completed, {len(poll.failed)} failed, "
            f"{len(poll.abandoned)} abandoned after {poll.sweeps} sweeps"
        )
    return ", ".join(parts) + "."
