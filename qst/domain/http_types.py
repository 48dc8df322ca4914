"""Shared HTTP type definitions and the response wire format."""

import enum
from dataclasses import dataclass
from typing import Optional

HTTP_VERSION = "HTTP/1.1"
CRLF = b"\r\n"


class Method(enum.Enum):
    """Request methods the server understands."""

    GET = "GET"
    HEAD = "HEAD"


class StatusCode(enum.IntEnum):
    """Status codes the server can produce on its own."""

    CONTINUE = 100
    OK = 200
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    IM_A_TEAPOT = 418
    NOT_IMPLEMENTED = 501
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Return the reason phrase sent on the status line."""
        return _REASON_PHRASES[self]

    @property
    def status_line(self) -> str:
        return f"{self.value} {self.phrase}"


_REASON_PHRASES = {
    StatusCode.CONTINUE: "Continue",
    StatusCode.OK: "Ok",
    StatusCode.BAD_REQUEST: "Bad Request",
    StatusCode.FORBIDDEN: "Forbidden",
    StatusCode.NOT_FOUND: "Not Found",
    StatusCode.METHOD_NOT_ALLOWED: "Method Not Allowed",
    StatusCode.IM_A_TEAPOT: "I'm A Teapot",
    StatusCode.NOT_IMPLEMENTED: "Not Implemented",
    StatusCode.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}


@dataclass(frozen=True)
class Request:
    """Represents a parsed request line."""

    method: Method
    target: str


@dataclass(frozen=True)
class Response:
    """Represents a response to be written once to a client.

    ``content_length`` is present exactly when ``body`` is, and always equals
    the body length.
    """

    status: StatusCode
    body: Optional[bytes] = None
    content_length: Optional[int] = None

    def __post_init__(self) -> None:
        if self.body is None:
            if self.content_length is not None:
                raise ValueError("content_length given for a response without body")
            return
        if self.content_length is None:
            raise ValueError("response body given without content_length")
        if self.content_length != len(self.body):
            raise ValueError(
                f"content_length {self.content_length} does not match "
                f"body length {len(self.body)}"
            )


class RequestRejected(Exception):
    """Raised by a request stage that answers with a fixed response."""

    def __init__(self, response: Response, reason: str = "") -> None:
        super().__init__(reason or response.status.status_line)
        self.response = response


def render_response(response: Response) -> bytes:
    """Serialize a response into the bytes written on the wire."""
    parts = [f"{HTTP_VERSION} {response.status.status_line}".encode("ascii"), CRLF]
    if response.content_length is not None:
        parts.append(f"Content-Length: {response.content_length}".encode("ascii"))
        parts.append(CRLF + CRLF)
    if response.body is not None:
        parts.append(response.body)
        parts.append(CRLF)
    parts.append(CRLF)
    return b"".join(parts)
