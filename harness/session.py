from __future__ import annotations

import asyncio
import logging
from typing import Callable

from common.config import LoadTestSettings
from harness.asr_client import ASRClient
from harness.dispatcher import SubmissionDispatcher
from harness.models import RoundResult
from harness.poller import CompletionCallback, CompletionPoller
from harness.prompts import read_stop_condition, read_uploading_params
from harness.report import format_round_summary, print_result

logger = logging.getLogger(__name__)


async def run_round(
    client: ASRClient,
    body: bytes,
    iterations: int,
    concurrency: int,
    settings: LoadTestSettings,
    on_complete: CompletionCallback = print_result,
) -> RoundResult:
    """Dispatch one batch, then poll the accepted operations to exhaustion."""
    dispatcher = SubmissionDispatcher(client, concurrency)
    registry = await dispatcher.dispatch(body, iterations)
    result = RoundResult(iterations=iterations, concurrency=concurrency, dispatch=dispatcher.stats)

    if registry.size == 0:
        print("Nothing was uploaded successfully.")
        return result

    print(f"Uploaded {registry.size} voices. Fetching results...")

    # rough guess of one warm-up unit per queued job before the first sweep
    await asyncio.sleep(settings.warmup_per_operation_s * registry.size)

    poller = CompletionPoller(
        client,
        interval_s=settings.poll_interval_s,
        max_sweeps=settings.max_sweeps,
        sweep_concurrency=settings.sweep_concurrency,
    )
    result.poll = await poller.poll_until_done(registry, on_complete)
    print(format_round_summary(result))
    return result


async def run_sessions(
    client: ASRClient,
    body: bytes,
    settings: LoadTestSettings,
    read_params: Callable[[], tuple[int, int]] = read_uploading_params,
    read_stop: Callable[[], bool] = read_stop_condition,
    on_complete: CompletionCallback = print_result,
) -> list[RoundResult]:
    """Prompt, run a round, and repeat until the operator declines.

    The prompts run on the loop thread between rounds, when every dispatch
    and poll task has finished, so Ctrl-C interrupts ``input()`` directly.
    """
    results: list[RoundResult] = []
    while True:
        iterations, concurrency = read_params()
        logger.info("Starting round: iterations=%d concurrency=%d", iterations, concurrency)
        results.append(
            await run_round(client, body, iterations, concurrency, settings, on_complete)
        )
        if read_stop():
            return results
