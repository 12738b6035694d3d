"""
Stream Client Tests - Live Log Viewer

Tests for SSE framing and the reconnecting stream client.
"""

import asyncio

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from log_viewer.errors import TransportError
from log_viewer.transport import SseDecoder, SseMessage, StreamClient


def _feed_all(decoder: SseDecoder, text: str) -> list[SseMessage]:
    out = []
    for line in text.splitlines(keepends=True):
        message = decoder.feed(line)
        if message is not None:
            out.append(message)
    return out


class TestSseDecoder:
    """Tests for SseDecoder."""

    def test_named_event(self):
        """Test event and data fields combine into one message."""
        messages = _feed_all(SseDecoder(), 'event: log\ndata: {"a": 1}\n\n')
        assert messages == [SseMessage(event="log", data='{"a": 1}')]

    def test_default_event_name(self):
        """Test a message without an event field is a 'message' event."""
        assert _feed_all(SseDecoder(), "data: x\n\n") == [SseMessage("message", "x")]

    def test_multiline_data(self):
        """Test data lines are joined with newlines."""
        messages = _feed_all(SseDecoder(), "data: a\ndata: b\n\n")
        assert messages[0].data == "a\nb"

    def test_comments_ignored(self):
        """Test keep-alive comments never produce messages."""
        assert _feed_all(SseDecoder(), ":keepalive\n\n: ping\n\n") == []

    def test_event_name_resets_between_messages(self):
        """Test the event name does not leak into the next message."""
        messages = _feed_all(SseDecoder(), "event: log\ndata: 1\n\ndata: 2\n\n")
        assert [m.event for m in messages] == ["log", "message"]

    def test_crlf_and_no_space(self):
        """Test CRLF endings and values without a leading space."""
        messages = _feed_all(SseDecoder(), "event:log\r\ndata:x\r\n\r\n")
        assert messages == [SseMessage("log", "x")]

    def test_unknown_fields_ignored(self):
        """Test id/retry fields do not affect the message."""
        messages = _feed_all(SseDecoder(), "id: 7\nretry: 100\nevent: log\ndata: y\n\n")
        assert messages == [SseMessage("log", "y")]

    def test_incomplete_message_is_held(self):
        """Test nothing is dispatched until the blank line."""
        decoder = SseDecoder()
        assert decoder.feed("event: log\n") is None
        assert decoder.feed("data: z\n") is None
        assert decoder.feed("\n") == SseMessage("log", "z")


class Recorder:
    """Collects StreamClient callbacks."""

    def __init__(self):
        self.events: list[tuple] = []
        self.failed = asyncio.Event()

    def on_open(self):
        self.events.append(("open",))

    def on_message(self, data):
        self.events.append(("message", data))

    def on_error(self, error):
        self.events.append(("error", error))
        self.failed.set()


async def _sse_handler(request: web.Request) -> web.StreamResponse:
    resp = web.StreamResponse(headers={"Content-Type": "text/event-stream"})
    await resp.prepare(request)
    await resp.write(b'event: log\ndata: {"event": "A", "level": "INFO"}\n\n')
    await resp.write(b":keepalive\n\n")
    await resp.write(b"event: other\ndata: ignored\n\n")
    await resp.write(b'event: log\ndata: {"event": "B", "level": "WARN"}\n\n')
    await resp.write_eof()
    return resp


async def _unavailable(request: web.Request) -> web.Response:
    return web.Response(status=503)


@pytest_asyncio.fixture
async def server():
    app = web.Application()
    app.router.add_get("/events", _sse_handler)
    app.router.add_get("/down", _unavailable)
    server = TestServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def http():
    session = aiohttp.ClientSession()
    yield session
    await session.close()


async def _run_until_failure(client: StreamClient, recorder: Recorder) -> None:
    task = asyncio.create_task(client.run())
    try:
        await asyncio.wait_for(recorder.failed.wait(), timeout=5)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


def _client(http, url, recorder) -> StreamClient:
    return StreamClient(
        http, url,
        on_open=recorder.on_open,
        on_message=recorder.on_message,
        on_error=recorder.on_error,
        reconnect_interval=10,
    )


class TestStreamClient:
    """Tests for StreamClient against an in-process SSE server."""

    @pytest.mark.asyncio
    async def test_delivers_log_events_then_reports_close(self, server, http):
        """Test open, only 'log' payloads, then an error when the stream ends."""
        recorder = Recorder()
        client = _client(http, str(server.make_url("/events")), recorder)
        await _run_until_failure(client, recorder)

        kinds = [e[0] for e in recorder.events]
        assert kinds == ["open", "message", "message", "error"]
        assert recorder.events[1][1] == '{"event": "A", "level": "INFO"}'
        assert recorder.events[2][1] == '{"event": "B", "level": "WARN"}'
        assert isinstance(recorder.events[3][1], TransportError)

    @pytest.mark.asyncio
    async def test_non_200_is_transport_error(self, server, http):
        """Test an error status never reports the stream as open."""
        recorder = Recorder()
        client = _client(http, str(server.make_url("/down")), recorder)
        await _run_until_failure(client, recorder)

        assert [e[0] for e in recorder.events] == ["error"]
        assert "503" in str(recorder.events[0][1])

    @pytest.mark.asyncio
    async def test_connection_refused(self, http):
        """Test a refused connection is reported as a TransportError."""
        recorder = Recorder()
        client = _client(http, "http://127.0.0.1:1/events", recorder)
        await _run_until_failure(client, recorder)

        assert isinstance(recorder.events[0][1], TransportError)

    @pytest.mark.asyncio
    async def test_reconnects_after_failure(self, server, http):
        """Test the client opens the stream again after it drops."""
        recorder = Recorder()
        client = StreamClient(
            http, str(server.make_url("/events")),
            on_open=recorder.on_open,
            on_message=recorder.on_message,
            on_error=recorder.on_error,
            reconnect_interval=0.01,
            max_backoff=0.02,
        )
        task = asyncio.create_task(client.run())
        try:
            for _ in range(500):
                if [e[0] for e in recorder.events].count("open") >= 2:
                    break
                await asyncio.sleep(0.01)
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert [e[0] for e in recorder.events].count("open") >= 2
