"""Main connection admission loop."""

import logging
import threading
from typing import Callable, Optional

from qst.bootstrap.config import ServerConfig
from qst.bootstrap.socket_factory import create_server_socket
from qst.domain.connection_id import ConnectionLoggerAdapter
from qst.lifecycle.state import ServerLifecycle
from qst.transport.concurrency_gate import ConcurrencyGate
from qst.transport.connection import Connection, ConnectionSource
from qst.transport.context import WorkerContext
from qst.transport.listener import ListenerSource
from qst.transport.worker import handle_connection

ACCEPT_LOGGER = ConnectionLoggerAdapter(logging.getLogger("qst.transport.accept"), {})

ConnectionHandler = Callable[[Connection, WorkerContext], None]


class AdmissionError(Exception):
    """Raised when an admitted connection cannot be given its own thread."""


def _run_handler(
    handler: ConnectionHandler,
    connection: Connection,
    context: WorkerContext,
    gate: ConcurrencyGate,
) -> None:
    try:
        handler(connection, context)
    finally:
        gate.release()


def _dispatch(
    handler: ConnectionHandler,
    connection: Connection,
    context: WorkerContext,
    gate: ConcurrencyGate,
    admitted: int,
) -> None:
    """Start the handler thread for a connection that already holds a slot."""
    thread = threading.Thread(
        target=_run_handler,
        args=(handler, connection, context, gate),
        name=f"qst-handler-{admitted}",
        daemon=False,
    )
    try:
        thread.start()
    except RuntimeError as error:
        gate.release()
        connection.close()
        ACCEPT_LOGGER.error(
            "Could not start handler thread",
            extra={
                "event": "admission_failed",
                "client": connection.peer,
                "admitted": admitted,
                "error_type": type(error).__name__,
            },
        )
        raise AdmissionError(f"cannot start handler for {connection.peer}") from error


def _request_limit_reached(config: ServerConfig, admitted: int) -> bool:
    return config.max_requests is not None and admitted >= config.max_requests


def serve(
    config: ServerConfig,
    source: ConnectionSource,
    lifecycle: Optional[ServerLifecycle] = None,
    handler: ConnectionHandler = handle_connection,
    context: Optional[WorkerContext] = None,
) -> None:
    """Admit connections from ``source`` until it runs dry or a limit is hit.

    Errors raised by ``source`` or by thread creation stop admission and
    propagate. Handlers already admitted always run to completion; before
    returning, this waits up to ``config.shutdown_grace_seconds`` for them.
    """
    gate = ConcurrencyGate(config.max_concurrent_handlers)
    if context is None:
        context = WorkerContext(config)
    admitted = 0
    try:
        while True:
            if _request_limit_reached(config, admitted):
                ACCEPT_LOGGER.info(
                    "Request limit reached, no longer admitting connections",
                    extra={
                        "event": "request_limit_reached",
                        "admitted": admitted,
                        "limit": config.max_requests,
                    },
                )
                break
            if lifecycle is not None and lifecycle.should_stop():
                break

            connection = source.next_connection()
            if connection is None:
                break

            gate.acquire()
            admitted += 1
            if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
                ACCEPT_LOGGER.debug(
                    "Connection admitted",
                    extra={
                        "event": "connection_admitted",
                        "client": connection.peer,
                        "admitted": admitted,
                        "in_flight": gate.in_flight,
                    },
                )
            _dispatch(handler, connection, context, gate, admitted)
    finally:
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "in_flight": gate.in_flight,
                "grace_seconds": config.shutdown_grace_seconds,
            },
        )
        if not gate.wait_for_idle(config.shutdown_grace_seconds):
            ACCEPT_LOGGER.warning(
                "Shutdown timeout exceeded",
                extra={"event": "shutdown_timeout", "in_flight": gate.in_flight},
            )
        ACCEPT_LOGGER.info(
            "Server stopped admitting connections",
            extra={"event": "server_stopped", "admitted": admitted},
        )


def run_server(config: ServerConfig, lifecycle: ServerLifecycle) -> None:
    """Bind the listening socket and serve connections from it."""
    server_socket = create_server_socket(config)
    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": config.bind_address,
            "port": server_socket.getsockname()[1],
        },
    )
    source = ListenerSource(server_socket, lifecycle, config.socket_timeout)
    try:
        serve(config, source, lifecycle)
    finally:
        server_socket.close()
