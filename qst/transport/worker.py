"""Worker logic for handling one client connection."""

import logging

from qst.domain.connection_id import (
    ConnectionLoggerAdapter,
    clear_connection_id,
    generate_connection_id,
    set_connection_id,
)
from qst.pipeline.io import send_response
from qst.pipeline.router import route_request
from qst.transport.connection import Connection, TransportWriteError
from qst.transport.context import WorkerContext

WORKER_LOGGER = ConnectionLoggerAdapter(logging.getLogger("qst.transport.worker"), {})


def handle_connection(connection: Connection, context: WorkerContext) -> None:
    """Answer the connection's request line with exactly one response."""
    set_connection_id(generate_connection_id())
    config = context.config
    WORKER_LOGGER.debug(
        "Request processing started",
        extra={"event": "request_started", "client": connection.peer},
    )
    try:
        response = route_request(
            connection.read_lines(),
            config.directory,
            config.default_file,
            config.not_found_file,
        )
        try:
            send_response(connection, response)
        except TransportWriteError as error:
            WORKER_LOGGER.critical(
                "Failed to write response",
                extra={
                    "event": "response_write_failed",
                    "client": connection.peer,
                    "status_code": int(response.status),
                    "error_type": type(error.__cause__ or error).__name__,
                },
            )
            context.fatal_handler(error)
            return
        WORKER_LOGGER.debug(
            "Request processing complete",
            extra={
                "event": "request_complete",
                "client": connection.peer,
                "status_code": int(response.status),
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": connection.peer,
                "error_type": type(error).__name__,
            },
            exc_info=True,
        )
        connection.close()
    finally:
        clear_connection_id()
