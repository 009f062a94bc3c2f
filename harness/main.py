from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from common.config import LoadTestSettings
from harness.asr_client import ASRClient
from harness.audio import build_request_body, load_audio
from harness.dispatcher import validate_round
from harness.session import run_round, run_sessions

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Load-test an ASR long-running recognize endpoint."
    )
    parser.add_argument("--audio", help="audio file submitted on every attempt")
    parser.add_argument("--language", help="language code sent with the audio")
    parser.add_argument("--beam-search", action="store_true", default=None,
                        help="ask the service for the slower beam search decoder")
    parser.add_argument("--max-sweeps", type=int, help="stop polling after this many sweeps")
    parser.add_argument("--iterations", type=int, help="run one round without prompting")
    parser.add_argument("--concurrency", type=int, help="run one round without prompting")
    args = parser.parse_args(argv)
    if (args.iterations is None) != (args.concurrency is None):
        parser.error("--iterations and --concurrency must be given together")
    return args


def build_settings(args: argparse.Namespace) -> LoadTestSettings:
    overrides = {
        "audio_path": args.audio,
        "language_code": args.language,
        "beam_search": args.beam_search,
        "max_sweeps": args.max_sweeps,
    }
    return LoadTestSettings(**{k: v for k, v in overrides.items() if v is not None})


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = build_settings(args)
    logging.basicConfig(
        stream=sys.stdout,
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    one_shot = args.iterations is not None
    if one_shot:
        try:
            validate_round(args.iterations, args.concurrency)
        except ValueError as exc:
            logger.error("%s", exc)
            return 2

    try:
        audio = load_audio(settings.audio_path)
    except (OSError, ValueError) as exc:
        logger.error("Failed to load the voice data: %s", exc)
        return 1
    body = build_request_body(audio, settings.language_code, settings.beam_search)

    async with ASRClient(settings) as client:
        if one_shot:
            await run_round(client, body, args.iterations, args.concurrency, settings)
        else:
            await run_sessions(client, body, settings)
    return 0


def cli() -> None:
    try:
        code = asyncio.run(main())
    except (KeyboardInterrupt, EOFError):
        print("\nStopped.")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    cli()
