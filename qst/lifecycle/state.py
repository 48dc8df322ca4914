"""Server lifecycle state management."""

import logging
import os
import threading

from qst.domain.connection_id import ConnectionLoggerAdapter

LIFECYCLE_LOGGER = ConnectionLoggerAdapter(logging.getLogger("qst.lifecycle"), {})

EXIT_FATAL = 1


class ServerLifecycle:
    """Tracks whether the server should stop admitting connections."""

    def __init__(self) -> None:
        self._stop_event = threading.Event()

    def should_stop(self) -> bool:
        """Check if the server should stop accepting new connections."""
        return self._stop_event.is_set()

    def begin_draining(self) -> None:
        """Stop admitting connections; running handlers finish normally."""
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        LIFECYCLE_LOGGER.info(
            "Beginning graceful shutdown", extra={"event": "shutdown_requested"}
        )


def abort_process(error: BaseException) -> None:
    """Terminate the whole process after an unrecoverable transport failure.

    Called from handler threads, where ``sys.exit`` would only end the
    thread.
    """
    LIFECYCLE_LOGGER.critical(
        "Aborting after fatal error",
        extra={"event": "process_aborted", "error_type": type(error).__name__},
    )
    logging.shutdown()
    os._exit(EXIT_FATAL)  # pylint: disable=protected-access
