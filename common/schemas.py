from __future__ import annotations

import base64
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

PROCESSING_COMPLETED = "PROCESSING_COMPLETED"
PROCESSING_STARTED = "PROCESSING_STARTED"


# --- Submission: client -> ASR ---

class LongRunningRecognizeRequest(BaseModel):
    signal: bytes
    language_code: str = "en-US"
    execute_beam_search: bool = False

    # the wire carries the audio as standard base64
    @field_serializer("signal")
    def _encode_signal(self, signal: bytes) -> str:
        return base64.b64encode(signal).decode("ascii")

    @field_validator("signal", mode="before")
    @classmethod
    def _decode_signal(cls, value):
        if isinstance(value, str):
            return base64.b64decode(value, validate=True)
        return value


class LongRunningRecognizeResponse(BaseModel):
    operation_id: int = Field(..., ge=0, strict=True)


# --- Operation status: ASR -> client ---

class Speaker(BaseModel):
    id: int = Field(..., ge=0)
    gender: str = ""


class Alternative(BaseModel):
    transcript: str = ""
    confidence: float = 0.0


class Transcription(BaseModel):
    time_start: float = 0.0
    time_end: float = 0.0
    speaker_id: int = Field(0, ge=0)
    alternatives: list[Alternative] = []

    @field_validator("alternatives", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value

    @property
    def best_transcript(self) -> str:
        return self.alternatives[0].transcript if self.alternatives else ""


class FetchOperationResponse(BaseModel):
    id: int = Field(0, ge=0)
    language_code: str = ""
    beam_search: bool = False
    processing_status: str
    processing_started_at: Optional[datetime] = None
    processing_finished_at: Optional[datetime] = None
    speakers: list[Speaker] = []
    transcriptions: list[Transcription] = []

    # the service sends null for empty lists
    @field_validator("speakers", "transcriptions", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value

    @property
    def completed(self) -> bool:
        return self.processing_status == PROCESSING_COMPLETED
