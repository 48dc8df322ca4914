"""Response output."""

import logging

from qst.domain.connection_id import ConnectionLoggerAdapter
from qst.domain.http_types import Response, render_response
from qst.transport.connection import Connection

IO_LOGGER = ConnectionLoggerAdapter(logging.getLogger("qst.io"), {})


def send_response(connection: Connection, response: Response) -> None:
    """Serialize the response, write it to the peer and close the connection.

    A failed write surfaces as ``TransportWriteError``.
    """
    payload = render_response(response)
    connection.write_and_close(payload)
    IO_LOGGER.debug(
        "Sent response",
        extra={
            "event": "response_sent",
            "client": connection.peer,
            "status_code": int(response.status),
            "bytes_out": len(payload),
        },
    )
