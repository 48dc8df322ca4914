"""Socket-backed source of client connections."""

import logging
import socket
from typing import Optional

from qst.domain.connection_id import ConnectionLoggerAdapter
from qst.lifecycle.state import ServerLifecycle
from qst.transport.connection import AcceptError, SocketConnection

LISTENER_LOGGER = ConnectionLoggerAdapter(logging.getLogger("qst.transport.listener"), {})


class ListenerSource:
    """Hands out connections accepted on a listening socket.

    The socket must carry a short timeout so the stop flag is noticed
    between accepts.
    """

    def __init__(
        self,
        server_socket: socket.socket,
        lifecycle: ServerLifecycle,
        client_timeout: Optional[float] = None,
    ) -> None:
        self._server_socket = server_socket
        self._lifecycle = lifecycle
        self._client_timeout = client_timeout

    def next_connection(self) -> Optional[SocketConnection]:
        while not self._lifecycle.should_stop():
            try:
                client_socket, client_address = self._server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if self._lifecycle.should_stop():
                    break
                LISTENER_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                raise AcceptError(f"accept failed: {error}") from error
            connection = SocketConnection(
                client_socket, client_address, self._client_timeout
            )
            if LISTENER_LOGGER.logger.isEnabledFor(logging.DEBUG):
                LISTENER_LOGGER.debug(
                    "Client connection accepted",
                    extra={"event": "client_accepted", "client": connection.peer},
                )
            return connection
        return None
