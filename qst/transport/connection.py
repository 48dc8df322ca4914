"""Connection abstractions between the transport and the request pipeline."""

import logging
import socket
from typing import BinaryIO, Iterator, Optional, Protocol

from qst.domain.connection_id import ConnectionLoggerAdapter

CONNECTION_LOGGER = ConnectionLoggerAdapter(
    logging.getLogger("qst.transport.connection"), {}
)

MAX_REQUEST_LINE_BYTES = 8192


class TransportError(Exception):
    """Base class for failures of the underlying byte transport."""


class AcceptError(TransportError):
    """Raised when the listener fails to hand out the next connection."""


class TransportWriteError(TransportError):
    """Raised when a response could not be written back to the peer."""


class Connection(Protocol):
    """One accepted client connection."""

    peer: str

    def read_lines(self) -> Iterator[str]:
        """Yield decoded text lines sent by the peer."""

    def write_and_close(self, payload: bytes) -> None:
        """Write the payload in full, then close the connection."""

    def close(self) -> None:
        """Close the connection without writing."""


class ConnectionSource(Protocol):  # pylint: disable=too-few-public-methods
    """Hands out accepted connections to the accept loop."""

    def next_connection(self) -> Optional[Connection]:
        """Return the next connection, or None once no more will arrive."""


class SocketConnection:
    """Connection backed by an accepted TCP socket."""

    def __init__(
        self,
        client_socket: socket.socket,
        client_address: tuple[str, int],
        timeout: Optional[float] = None,
    ) -> None:
        self._socket = client_socket
        self._reader: Optional[BinaryIO] = None
        self.peer = f"{client_address[0]}:{client_address[1]}"
        if timeout is not None:
            client_socket.settimeout(timeout)

    def read_lines(self) -> Iterator[str]:
        if self._reader is None:
            self._reader = self._socket.makefile("rb")
        while True:
            raw_line = self._reader.readline(MAX_REQUEST_LINE_BYTES)
            if not raw_line:
                return
            if len(raw_line) >= MAX_REQUEST_LINE_BYTES and not raw_line.endswith(b"\n"):
                raise ValueError(
                    f"line from {self.peer} exceeds {MAX_REQUEST_LINE_BYTES} bytes"
                )
            yield raw_line.decode("utf-8").rstrip("\r\n")

    def write_and_close(self, payload: bytes) -> None:
        try:
            self._socket.sendall(payload)
        except OSError as error:
            raise TransportWriteError(
                f"failed to write {len(payload)} bytes to {self.peer}"
            ) from error
        finally:
            self.close()

    def close(self) -> None:
        try:
            self._socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass
        if self._reader is not None:
            self._reader.close()
        self._socket.close()
        CONNECTION_LOGGER.debug(
            "Socket closed", extra={"event": "socket_closed", "client": self.peer}
        )
