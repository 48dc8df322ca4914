"""Listening socket creation."""

import logging
import socket

from qst.bootstrap.config import ServerConfig
from qst.domain.connection_id import ConnectionLoggerAdapter

SOCKET_LOGGER = ConnectionLoggerAdapter(logging.getLogger("qst.socket"), {})

ACCEPT_TIMEOUT_SECONDS = 0.5


class BindError(Exception):
    """Raised when the listening socket cannot be bound."""


def create_server_socket(config: ServerConfig) -> socket.socket:
    """Bind and listen on the configured address."""
    address = (config.bind_address, config.bind_port)
    try:
        server_socket = socket.create_server(address)
    except (OSError, OverflowError) as error:
        SOCKET_LOGGER.critical(
            "Failed to bind listening socket",
            extra={
                "event": "bind_failed",
                "host": config.bind_address,
                "port": config.bind_port,
                "error_type": type(error).__name__,
            },
        )
        raise BindError(
            f"cannot listen on {config.bind_address}:{config.bind_port}: {error}"
        ) from error
    server_socket.settimeout(ACCEPT_TIMEOUT_SECONDS)
    return server_socket
