"""Tests for chunk transports."""

import asyncio
import json

import httpx
import pytest
from hyx.timeout.exceptions import MaxDurationExceeded

from analysis_stream.core.exceptions import (
    AuthenticationError,
    StreamCancelledError,
    TransportError,
)
from analysis_stream.execution.cancellation import CancellationToken
from analysis_stream.transport.base import iter_chunks
from analysis_stream.transport.http import HttpTaskTransport, error_from_response


async def _byte_chunks(*parts: bytes):
    for part in parts:
        await asyncio.sleep(0)
        yield part


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url="http://backend.test",
        transport=httpx.MockTransport(handler),
    )


async def _collect(transport: HttpTaskTransport, task: str) -> list[str]:
    return [chunk async for chunk in transport.stream(task, CancellationToken())]


class TestHttpTaskTransport:
    """Tests for the HTTP task transport."""

    @pytest.mark.asyncio
    async def test_posts_task_to_session_path(self, settings):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, content=b"event: started\ndata: ok\n")

        async with _mock_client(handler) as client:
            transport = HttpTaskTransport(settings, client=client)
            chunks = await _collect(transport, "total revenue")

        assert "".join(chunks) == "event: started\ndata: ok\n"
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/session/run_task_v2/sess-1"
        assert json.loads(request.content) == {
            "task": "total revenue",
            "log_iter": 3,
            "red_report": False,
        }

    @pytest.mark.asyncio
    async def test_session_override(self, settings):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, content=b"")

        async with _mock_client(handler) as client:
            transport = HttpTaskTransport(settings, session_id="other", client=client)
            assert await _collect(transport, "t") == []

        assert paths == ["/session/run_task_v2/other"]

    @pytest.mark.asyncio
    async def test_relays_body_chunks_in_order(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=_byte_chunks(b"event: thought\n", b"data: Thought: a\n", b"event: fin"),
            )

        async with _mock_client(handler) as client:
            chunks = await _collect(HttpTaskTransport(settings, client=client), "t")

        assert "".join(chunks) == "event: thought\ndata: Thought: a\nevent: fin"

    @pytest.mark.asyncio
    async def test_error_detail_becomes_message(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"detail": "Session expired"})

        async with _mock_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await _collect(HttpTaskTransport(settings, client=client), "t")

        assert str(exc_info.value) == "Session expired"
        assert exc_info.value.status_code == 500
        assert exc_info.value.recoverable

    @pytest.mark.asyncio
    async def test_unauthenticated(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"detail": "Not authenticated"})

        async with _mock_client(handler) as client:
            with pytest.raises(AuthenticationError) as exc_info:
                await _collect(HttpTaskTransport(settings, client=client), "t")

        assert exc_info.value.status_code == 401
        assert not exc_info.value.recoverable

    @pytest.mark.asyncio
    async def test_connection_error_is_wrapped(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _mock_client(handler) as client:
            with pytest.raises(TransportError, match="Connection error"):
                await _collect(HttpTaskTransport(settings, client=client), "t")

    @pytest.mark.asyncio
    async def test_cancelled_token_stops_stream(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_byte_chunks(b"event: a\n", b"data: b\n"))

        token = CancellationToken()
        token.cancel()
        async with _mock_client(handler) as client:
            transport = HttpTaskTransport(settings, client=client)
            with pytest.raises(StreamCancelledError):
                async for _ in transport.stream("t", token):
                    pass

    @pytest.mark.asyncio
    async def test_close_keeps_injected_client(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"")

        async with _mock_client(handler) as client:
            transport = HttpTaskTransport(settings, client=client)
            await transport.close()
            assert not client.is_closed


class TestErrorFromResponse:
    """Tests for error response mapping."""

    def test_fallback_message(self):
        response = httpx.Response(502, text="<html>bad gateway</html>")
        error = error_from_response(response, "Streaming task failed")

        assert str(error) == "Streaming task failed"
        assert error.recoverable

    def test_message_field(self):
        response = httpx.Response(400, json={"message": "task too long"})
        error = error_from_response(response, "fallback")

        assert str(error) == "task too long"
        assert not error.recoverable

    def test_rate_limited_is_recoverable(self):
        error = error_from_response(httpx.Response(429, json={}), "slow down")
        assert error.recoverable


class TestIterChunks:
    """Tests for cancellable chunk iteration."""

    @pytest.mark.asyncio
    async def test_skips_empty_chunks(self):
        async def source():
            for chunk in ["a", "", "b"]:
                yield chunk

        chunks = [c async for c in iter_chunks(source(), CancellationToken())]
        assert chunks == ["a", "b"]

    @pytest.mark.asyncio
    async def test_cancel_unblocks_stalled_source(self):
        closed = asyncio.Event()

        async def stalled():
            try:
                yield "event: thought\n"
                await asyncio.Event().wait()
                yield "never"
            finally:
                closed.set()

        token = CancellationToken()
        received = []

        async def consume():
            async for chunk in iter_chunks(stalled(), token):
                received.append(chunk)

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        token.cancel()

        with pytest.raises(StreamCancelledError):
            await consumer
        assert received == ["event: thought\n"]
        assert closed.is_set()

    @pytest.mark.asyncio
    async def test_idle_timeout(self):
        async def stalled():
            await asyncio.Event().wait()
            yield "never"

        with pytest.raises(MaxDurationExceeded):
            async for _ in iter_chunks(stalled(), CancellationToken(), idle_timeout=0.01):
                pass

    @pytest.mark.asyncio
    async def test_idle_timeout_allows_steady_source(self):
        async def steady():
            for chunk in ["event: thought\n", "data: Thought: a\n"]:
                await asyncio.sleep(0)
                yield chunk

        chunks = [
            c async for c in iter_chunks(steady(), CancellationToken(), idle_timeout=1.0)
        ]
        assert chunks == ["event: thought\n", "data: Thought: a\n"]

    @pytest.mark.asyncio
    async def test_idle_timeout_from_settings(self, settings):
        async def stalled_body():
            yield b"event: thought\n"
            await asyncio.Event().wait()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=stalled_body())

        settings.chunk_timeout_seconds = 0.01
        async with _mock_client(handler) as client:
            with pytest.raises(MaxDurationExceeded):
                await _collect(HttpTaskTransport(settings, client=client), "t")
