from __future__ import annotations

import logging
from pathlib import Path

from common.schemas import LongRunningRecognizeRequest

logger = logging.getLogger(__name__)


def load_audio(path: str | Path) -> bytes:
    """Read the audio payload that every submission will carry."""
    data = Path(path).read_bytes()
    if not data:
        raise ValueError(f"Audio file {path} is empty")
    logger.info("Loaded %d bytes of audio from %s", len(data), path)
    return data


def build_request_body(
    audio: bytes,
    language_code: str = "en-US",
    execute_beam_search: bool = False,
) -> bytes:
    """Serialize the recognize request once so every attempt reuses it."""
    request = LongRunningRecognizeRequest(
        signal=audio,
        language_code=language_code,
        execute_beam_search=execute_beam_search,
    )
    return request.model_dump_json().encode("utf-8")
