"""File serving handlers."""

import logging
from pathlib import Path
from typing import Optional

from qst.domain.connection_id import ConnectionLoggerAdapter
from qst.domain.http_types import Response
from qst.domain.response_builders import not_found_response, ok_response

FILE_LOGGER = ConnectionLoggerAdapter(logging.getLogger("qst.handlers.file"), {})

FILE_ENCODING = "utf-8"


def read_text_file(directory: str, fetch_path: str) -> bytes:
    """Read a whole text file and return its content unchanged.

    Raises ``OSError`` or ``ValueError`` (undecodable content, a NUL byte in
    the path) when the file cannot be read as text. Line endings are kept as
    stored.
    """
    file_path = Path(directory) / fetch_path
    if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
        FILE_LOGGER.debug(
            "File read started",
            extra={"event": "file_read_started", "path": file_path.as_posix()},
        )
    content = file_path.read_bytes()
    content.decode(FILE_ENCODING)
    return content


def _not_found_page(directory: str, not_found_file: Optional[str]) -> Optional[bytes]:
    if not_found_file is None:
        return None
    try:
        return read_text_file(directory, not_found_file)
    except (OSError, ValueError) as error:
        FILE_LOGGER.warning(
            "Not found page unreadable, sending empty 404",
            extra={
                "event": "not_found_fallback_failed",
                "path": not_found_file,
                "error_type": type(error).__name__,
            },
        )
        return None


def file_response(
    fetch_path: str, directory: str, not_found_file: Optional[str] = None
) -> Response:
    """Serve a resolved fetch path, falling back to a 404 response."""
    try:
        content = read_text_file(directory, fetch_path)
    except (OSError, ValueError) as error:
        FILE_LOGGER.info(
            "File not found",
            extra={
                "event": "file_not_found",
                "path": fetch_path,
                "error_type": type(error).__name__,
            },
        )
        return not_found_response(_not_found_page(directory, not_found_file))

    FILE_LOGGER.info(
        "File read operation complete",
        extra={"event": "file_served", "path": fetch_path, "bytes_out": len(content)},
    )
    return ok_response(content)
