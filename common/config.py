from typing import Optional

from pydantic_settings import BaseSettings


class LoadTestSettings(BaseSettings):
    submit_url: str = "https://asr.sapiensapi.com/v1/speech:longrunningrecognize"
    operations_url: str = "https://asr.sapiensapi.com/v1/operations/"
    audio_path: str = "short_voice.flac"
    language_code: str = "en-US"
    beam_search: bool = False
    request_timeout_s: float = 120.0
    poll_interval_s: float = 1.0
    warmup_per_operation_s: float = 1.0
    max_sweeps: Optional[int] = None
    sweep_concurrency: int = 16
    log_level: str = "INFO"

    model_config = {"env_prefix": "LOADTEST_"}


class MockASRSettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8003
    processing_delay_s: float = 2.0
    error_rate: float = 0.0

    model_config = {"env_prefix": "MOCK_ASR_"}
