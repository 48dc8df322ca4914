"""Request line parsing."""

from typing import Iterable

from qst.domain.http_types import Method, Request, RequestRejected
from qst.domain.response_builders import (
    bad_request_response,
    not_implemented_response,
)

SUPPORTED_METHODS = {method.value: method for method in Method}


class MalformedRequest(RequestRejected):
    """Raised when the request line is missing, unreadable or incomplete."""

    def __init__(self, reason: str) -> None:
        super().__init__(bad_request_response(), reason)


class UnsupportedMethod(RequestRejected):
    """Raised when the request line names a method other than GET or HEAD."""

    def __init__(self, method: str) -> None:
        super().__init__(not_implemented_response(), f"unsupported method {method!r}")
        self.method = method


def read_request_line(lines: Iterable[str]) -> str:
    """Consume exactly one line from the input sequence."""
    try:
        return next(iter(lines))
    except StopIteration as exc:
        raise MalformedRequest("no request line received") from exc
    except (OSError, ValueError) as exc:
        raise MalformedRequest(f"request line unreadable: {exc}") from exc


def parse_request(lines: Iterable[str]) -> Request:
    """Parse the request line into a :class:`Request`.

    Only the first line is read. Tokens after the target, such as the
    protocol version, are accepted without validation, and header lines are
    left unread.
    """
    tokens = read_request_line(lines).split()
    if len(tokens) < 2:
        raise MalformedRequest("request line needs a method and a target")

    method_token, target = tokens[0], tokens[1]
    method = SUPPORTED_METHODS.get(method_token)
    if method is None:
        raise UnsupportedMethod(method_token)
    return Request(method, target)
