"""Quick static file server entry point."""

import logging
import signal
import sys
from typing import Optional

from qst.bootstrap.config import build_server_config, parse_cli_args
from qst.bootstrap.logging_setup import configure_logging
from qst.bootstrap.socket_factory import BindError
from qst.domain.connection_id import ConnectionLoggerAdapter
from qst.lifecycle.state import ServerLifecycle
from qst.transport.accept_loop import run_server

SERVER_LOGGER = ConnectionLoggerAdapter(logging.getLogger("qst.server"), {})

EXIT_OK = 0
EXIT_SERVER_ERROR = 1
EXIT_CONFIG_ERROR = 2


def main(argv: Optional[list[str]] = None) -> int:
    """Start the server and return the process exit code."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination, args.log_json)
    config = build_server_config(args)
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal",
            extra={"event": "signal_received", "signal": signum},
        )
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting static file server",
        extra={
            "event": "server_starting",
            "host": config.bind_address,
            "port": config.bind_port,
            "directory": config.directory,
            "default_file": config.default_file,
            "not_found_file": config.not_found_file,
            "max_concurrent_handlers": config.max_concurrent_handlers,
            "max_requests": config.max_requests,
        },
    )
    try:
        run_server(config, lifecycle)
    except BindError as error:
        SERVER_LOGGER.critical(
            "Server could not start",
            extra={"event": "startup_failed", "reason": str(error)},
        )
        return EXIT_CONFIG_ERROR
    except Exception as error:  # pylint: disable=broad-except
        SERVER_LOGGER.critical(
            "Server failed",
            extra={"event": "server_failed", "error_type": type(error).__name__},
            exc_info=True,
        )
        return EXIT_SERVER_ERROR
    SERVER_LOGGER.info("Server shutdown complete", extra={"event": "server_exited"})
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
