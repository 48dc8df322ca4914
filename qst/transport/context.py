"""Context object shared across worker threads."""

from dataclasses import dataclass
from typing import Callable

from qst.bootstrap.config import ServerConfig
from qst.lifecycle.state import abort_process

FatalHandler = Callable[[BaseException], None]


@dataclass(frozen=True)
class WorkerContext:
    """Read-only dependencies shared across handler threads."""

    config: ServerConfig
    fatal_handler: FatalHandler = abort_process
