"""Request routing: from request line to response."""

import logging
from typing import Iterable, Optional

from qst.domain.connection_id import ConnectionLoggerAdapter
from qst.domain.http_types import RequestRejected, Response
from qst.domain.response_builders import forbidden_response
from qst.domain.sandbox import is_internal_path, resolve_fetch_path
from qst.handlers.file_handler import file_response
from qst.pipeline.parsing import parse_request

ROUTER_LOGGER = ConnectionLoggerAdapter(logging.getLogger("qst.pipeline.router"), {})


def route_request(
    lines: Iterable[str],
    directory: str,
    default_file: str,
    not_found_file: Optional[str] = None,
) -> Response:
    """Build the single response for a connection's request line."""
    try:
        request = parse_request(lines)
        ROUTER_LOGGER.debug(
            "Request line parsed",
            extra={
                "event": "request_line_parsed",
                "method": request.method.value,
                "target": request.target,
            },
        )
        fetch_path = resolve_fetch_path(request, default_file)
    except RequestRejected as rejection:
        ROUTER_LOGGER.warning(
            "Request rejected",
            extra={
                "event": "request_rejected",
                "status_code": int(rejection.response.status),
                "reason": str(rejection),
                "error_type": type(rejection).__name__,
            },
        )
        return rejection.response

    if is_internal_path(fetch_path):
        ROUTER_LOGGER.warning(
            "Internal file access blocked",
            extra={"event": "internal_path_blocked", "path": fetch_path},
        )
        return forbidden_response()

    return file_response(fetch_path, directory, not_found_file)
