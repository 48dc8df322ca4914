"""Unit tests for connection admission in the accept loop."""

import logging
import threading
import time
from unittest.mock import patch

import pytest

from qst.bootstrap.config import ServerConfig
from qst.lifecycle.state import ServerLifecycle
from qst.transport.accept_loop import AdmissionError, serve
from qst.transport.connection import AcceptError
from tests.utils.fakes import FakeConnection, ScriptedSource


def _connections(count: int) -> list[FakeConnection]:
    return [
        FakeConnection(["GET / HTTP/1.1"], peer=f"127.0.0.1:{40000 + index}")
        for index in range(count)
    ]


class RecordingHandler:
    """Handler stub that records admissions and peak concurrency."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.handled: list[str] = []
        self.running = 0
        self.peak = 0
        self._lock = threading.Lock()

    def __call__(self, connection, _context) -> None:
        with self._lock:
            self.running += 1
            self.peak = max(self.peak, self.running)
        time.sleep(self.delay)
        with self._lock:
            self.running -= 1
            self.handled.append(connection.peer)


def test_serve_returns_when_source_is_exhausted() -> None:
    """A None from the source ends serving after every handler finished."""
    connections = _connections(3)
    handler = RecordingHandler()
    serve(ServerConfig(), ScriptedSource([*connections, None]), handler=handler)
    assert sorted(handler.handled) == sorted(c.peer for c in connections)


def test_zero_request_limit_admits_nothing() -> None:
    """A limit of zero stops before the source is even polled."""
    source = ScriptedSource(_connections(2))
    handler = RecordingHandler()
    serve(ServerConfig(max_requests=0), source, handler=handler)
    assert source.polls == 0
    assert not handler.handled


@pytest.mark.parametrize("limit", [1, 3])
def test_request_limit_admits_exactly_n(limit: int) -> None:
    """With a limit of N the source is polled N times and N are handled."""
    connections = _connections(5)
    source = ScriptedSource(connections)
    handler = RecordingHandler()
    serve(ServerConfig(max_requests=limit), source, handler=handler)
    assert source.polls == limit
    assert sorted(handler.handled) == sorted(c.peer for c in connections[:limit])


def test_request_limit_logs_event(caplog: pytest.LogCaptureFixture) -> None:
    """Reaching the limit is logged with the admitted count."""
    caplog.set_level(logging.INFO, logger="qst")
    serve(
        ServerConfig(max_requests=2),
        ScriptedSource(_connections(4)),
        handler=RecordingHandler(),
    )
    record = next(
        r for r in caplog.records if getattr(r, "event", None) == "request_limit_reached"
    )
    assert record.admitted == 2


def test_source_error_propagates_after_earlier_connections() -> None:
    """An error from the source stops admission and is re-raised."""
    connections = _connections(2)
    source = ScriptedSource([*connections, AcceptError("boom"), *_connections(2)])
    handler = RecordingHandler()
    with pytest.raises(AcceptError):
        serve(ServerConfig(), source, handler=handler)
    assert source.polls == 3
    assert sorted(handler.handled) == sorted(c.peer for c in connections)


def test_concurrency_never_exceeds_limit() -> None:
    """No more than the configured number of handlers run at once."""
    handler = RecordingHandler(delay=0.02)
    serve(
        ServerConfig(max_concurrent_handlers=2),
        ScriptedSource(_connections(12)),
        handler=handler,
    )
    assert len(handler.handled) == 12
    assert handler.peak <= 2


def test_handlers_run_in_parallel_without_a_limit() -> None:
    """Handlers get their own threads and overlap."""
    barrier = threading.Barrier(3, timeout=5)

    def handler(_connection, _context) -> None:
        barrier.wait()

    serve(ServerConfig(), ScriptedSource(_connections(3)), handler=handler)
    assert not barrier.broken


def test_failing_handler_still_releases_its_slot() -> None:
    """A handler that raises does not leak its concurrency slot."""
    handled = []

    def handler(connection, _context) -> None:
        handled.append(connection.peer)
        raise RuntimeError("handler blew up")

    with patch("threading.excepthook"):
        serve(
            ServerConfig(max_concurrent_handlers=1, shutdown_grace_seconds=5),
            ScriptedSource(_connections(3)),
            handler=handler,
        )
    assert len(handled) == 3


def test_thread_start_failure_raises_admission_error() -> None:
    """When no thread can be started, serve fails and closes the connection."""
    connection = FakeConnection(["GET / HTTP/1.1"])
    with patch(
        "qst.transport.accept_loop.threading.Thread.start",
        side_effect=RuntimeError("can't start new thread"),
    ):
        with pytest.raises(AdmissionError):
            serve(
                ServerConfig(max_concurrent_handlers=1),
                ScriptedSource([connection]),
                handler=RecordingHandler(),
            )
    assert connection.closed


def test_lifecycle_stop_ends_admission() -> None:
    """A drained lifecycle stops polling the source."""
    lifecycle = ServerLifecycle()
    lifecycle.begin_draining()
    source = ScriptedSource(_connections(2))
    serve(ServerConfig(), source, lifecycle, handler=RecordingHandler())
    assert source.polls == 0


def test_serve_uses_default_worker(tmp_path) -> None:
    """Without a custom handler each connection gets a real response."""
    (tmp_path / "index.html").write_text("hello")
    connections = _connections(2)
    serve(ServerConfig(directory=str(tmp_path)), ScriptedSource(connections))
    for connection in connections:
        assert connection.written == (
            b"HTTP/1.1 200 Ok\r\nContent-Length: 5\r\n\r\nhello\r\n\r\n"
        )
