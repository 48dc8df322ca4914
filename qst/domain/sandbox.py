"""Fetch path resolution that keeps requests inside the content root."""

from qst.domain.http_types import Request, RequestRejected
from qst.domain.response_builders import forbidden_response, teapot_response

ROOT_TARGET = "/"
TEAPOT_TARGET = "//coffee"
ENCODED_SPACE = "%20"
INTERNAL_MARKER = "_"


class ForbiddenPath(RequestRejected):
    """Raised when a fetch target could escape or list the content root."""

    def __init__(self, target: str) -> None:
        super().__init__(forbidden_response(), f"forbidden target {target!r}")
        self.target = target


class TeapotRefusal(RequestRejected):
    """Raised when a client asks the server to brew coffee."""

    def __init__(self) -> None:
        super().__init__(teapot_response(), "refusing to brew coffee")


def resolve_fetch_path(request: Request, default_file: str) -> str:
    """Map a request target onto a relative path rooted at ``.``.

    This is string rewriting only: nothing is looked up on disk. Any target
    containing ``//`` or ``..`` or ending with ``/`` is refused outright
    instead of being canonicalized.
    """
    target = request.target
    if target == ROOT_TARGET:
        return f"./{default_file}"
    if target == TEAPOT_TARGET:
        raise TeapotRefusal()
    if "//" in target or ".." in target or target.endswith("/"):
        raise ForbiddenPath(target)

    decoded = target.replace(ENCODED_SPACE, " ")
    if decoded.startswith("/"):
        return f".{decoded}"
    return f"./{decoded}"


def is_internal_path(fetch_path: str) -> bool:
    """Return True for resolved paths naming an internal file, like ``./_x``."""
    return len(fetch_path) > 2 and fetch_path[2] == INTERNAL_MARKER
