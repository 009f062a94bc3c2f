import json

import httpx
import pytest

from common.config import LoadTestSettings
from harness.asr_client import ASRClient, DecodeError, ProtocolError, TransportError

SETTINGS = LoadTestSettings(
    submit_url="http://asr.test/v1/speech:longrunningrecognize",
    operations_url="http://asr.test/v1/operations/",
)


def make_client(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return http, ASRClient(SETTINGS, http=http)


class TestSubmit:
    @pytest.mark.asyncio
    async def test_returns_operation_id(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["content_type"] = request.headers["content-type"]
            seen["body"] = request.content
            return httpx.Response(200, json={"operation_id": 42})

        http, client = make_client(handler)
        async with http:
            assert await client.submit(b'{"signal": ""}') == 42

        assert seen["method"] == "POST"
        assert seen["url"] == SETTINGS.submit_url
        assert seen["content_type"] == "application/json;charset=utf-8"
        assert seen["body"] == b'{"signal": ""}'

    @pytest.mark.asyncio
    async def test_non_200_raises_protocol_error_with_body(self):
        http, client = make_client(lambda request: httpx.Response(429, text="slow down"))
        async with http:
            with pytest.raises(ProtocolError) as info:
                await client.submit(b"{}")
        assert info.value.status_code == 429
        assert info.value.body == "slow down"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"not json", b"{}", b'{"operation_id": -1}', b'{"operation_id": "5"}'])
    async def test_bad_body_raises_decode_error(self, body):
        http, client = make_client(lambda request: httpx.Response(200, content=body))
        async with http:
            with pytest.raises(DecodeError):
                await client.submit(b"{}")

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        http, client = make_client(handler)
        async with http:
            with pytest.raises(TransportError, match="connection refused"):
                await client.submit(b"{}")


class TestFetchStatus:
    @pytest.mark.asyncio
    async def test_pending_status(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json={"id": 5, "processing_status": "PROCESSING_STARTED"})

        http, client = make_client(handler)
        async with http:
            outcome = await client.fetch_status(5)

        assert seen == ["http://asr.test/v1/operations/5"]
        assert not outcome.completed
        assert outcome.transcriptions == []

    @pytest.mark.asyncio
    async def test_completed_status_carries_transcriptions(self):
        payload = {
            "id": 9,
            "language_code": "en-US",
            "beam_search": False,
            "processing_status": "PROCESSING_COMPLETED",
            "processing_started_at": "2024-03-01T10:00:00Z",
            "processing_finished_at": "2024-03-01T10:00:03.5Z",
            "speakers": [{"id": 0, "gender": "female"}],
            "transcriptions": [
                {
                    "time_start": 0.0,
                    "time_end": 2.25,
                    "speaker_id": 0,
                    "alternatives": [
                        {"transcript": "hello world", "confidence": 0.93},
                        {"transcript": "hello word", "confidence": 0.41},
                    ],
                }
            ],
        }
        http, client = make_client(lambda request: httpx.Response(200, content=json.dumps(payload)))
        async with http:
            outcome = await client.fetch_status(9)

        assert outcome.completed
        assert len(outcome.transcriptions) == 1
        assert outcome.transcriptions[0].best_transcript == "hello world"
        assert outcome.transcriptions[0].time_end == 2.25

    @pytest.mark.asyncio
    async def test_malformed_status_raises_decode_error(self):
        http, client = make_client(lambda request: httpx.Response(200, json={"transcriptions": "?"}))
        async with http:
            with pytest.raises(DecodeError):
                await client.fetch_status(1)

    @pytest.mark.asyncio
    async def test_not_found_raises_protocol_error(self):
        http, client = make_client(lambda request: httpx.Response(404, text="no such operation"))
        async with http:
            with pytest.raises(ProtocolError, match="404"):
                await client.fetch_status(1)

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        http, client = make_client(handler)
        async with http:
            with pytest.raises(TransportError):
                await client.fetch_status(1)


class TestOperationUrl:
    def test_trailing_slash_optional(self):
        client = ASRClient(LoadTestSettings(operations_url="http://asr.test/ops"), http=httpx.AsyncClient())
        assert client.operation_url(12) == "http://asr.test/ops/12"


def bad_gzip(request):
    return httpx.Response(
        200,
        stream=httpx.ByteStream(b"not gzip at all"),
        headers={"Content-Encoding": "gzip"},
    )


class TestUndecodableTransfer:
    @pytest.mark.asyncio
    async def test_submit_bad_content_encoding_is_transport_error(self):
        http, client = make_client(bad_gzip)
        async with http:
            with pytest.raises(TransportError):
                await client.submit(b"{}")

    @pytest.mark.asyncio
    async def test_fetch_bad_content_encoding_is_transport_error(self):
        http, client = make_client(bad_gzip)
        async with http:
            with pytest.raises(TransportError):
                await client.fetch_status(1)

    @pytest.mark.asyncio
    async def test_redirect_loop_is_transport_error(self):
        def handler(request):
            return httpx.Response(302, headers={"Location": str(request.url)})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True, max_redirects=2)
        client = ASRClient(SETTINGS, http=http)
        async with http:
            with pytest.raises(TransportError):
                await client.fetch_status(1)
