"""Pure response builders."""

from typing import Optional

from qst.domain.http_types import Response, StatusCode

TEAPOT_PAGE = (
    b"<!DOCTYPE html>\n"
    b"<html>\n"
    b"<head><title>418 I'm A Teapot</title></head>\n"
    b"<body>\n"
    b"<h1>I'm A Teapot</h1>\n"
    b"<p>This server refuses to brew coffee because it is, permanently, a teapot.</p>\n"
    b"</body>\n"
    b"</html>\n"
)


def ok_response(body: bytes) -> Response:
    """Return a 200 response carrying the given content."""
    return Response(StatusCode.OK, body, len(body))


def bad_request_response() -> Response:
    return Response(StatusCode.BAD_REQUEST)


def forbidden_response() -> Response:
    return Response(StatusCode.FORBIDDEN)


def not_implemented_response() -> Response:
    return Response(StatusCode.NOT_IMPLEMENTED)


def not_found_response(body: Optional[bytes] = None) -> Response:
    """Return a 404 response, optionally with a custom error page."""
    if body is None:
        return Response(StatusCode.NOT_FOUND)
    return Response(StatusCode.NOT_FOUND, body, len(body))


def teapot_response() -> Response:
    """Return the fixed 418 refusal page."""
    return Response(StatusCode.IM_A_TEAPOT, TEAPOT_PAGE, len(TEAPOT_PAGE))
