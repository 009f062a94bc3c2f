from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from common.config import LoadTestSettings
from common.schemas import FetchOperationResponse, LongRunningRecognizeResponse
from harness.models import PollOutcome

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json;charset=utf-8"


class ASRClientError(Exception):
    """Base class for failures talking to the ASR service."""


class TransportError(ASRClientError):
    """The exchange failed before a usable response arrived (connection, timeout, bad encoding)."""


class ProtocolError(ASRClientError):
    """The service answered with a non-200 status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class DecodeError(ASRClientError):
    """The response body did not match the expected schema."""


class ASRClient:
    """Thin async client for the long-running recognize API.

    One instance shares a single connection pool across every concurrent
    submission and status fetch. Use it as an async context manager, or
    hand it an already configured ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        settings: LoadTestSettings | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or LoadTestSettings()
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=self.settings.request_timeout_s)

    async def __aenter__(self) -> ASRClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def operation_url(self, operation_id: int) -> str:
        return f"{self.settings.operations_url.rstrip('/')}/{operation_id}"

    async def submit(self, body: bytes) -> int:
        """POST a serialized recognize request and return the operation id."""
        try:
            resp = await self._http.post(
                self.settings.submit_url,
                content=body,
                headers={"Content-Type": JSON_CONTENT_TYPE},
            )
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

        if resp.status_code != httpx.codes.OK:
            raise ProtocolError(resp.status_code, resp.text)

        try:
            data = LongRunningRecognizeResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            raise DecodeError(str(exc)) from exc
        return data.operation_id

    async def fetch_status(self, operation_id: int) -> PollOutcome:
        """GET the state of one operation."""
        try:
            resp = await self._http.get(self.operation_url(operation_id))
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

        if resp.status_code != httpx.codes.OK:
            raise ProtocolError(resp.status_code, resp.text)

        try:
            data = FetchOperationResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            raise DecodeError(str(exc)) from exc

        if not data.completed:
            logger.debug("Operation %d is %s", operation_id, data.processing_status)
            return PollOutcome(completed=False)
        return PollOutcome(completed=True, transcriptions=data.transcriptions)
