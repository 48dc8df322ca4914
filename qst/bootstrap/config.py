"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass
from typing import Optional


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    return value if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


DEFAULT_ADDR = "127.0.0.1"
DEFAULT_PORT = 6969
DEFAULT_FILE = "index.html"
DEFAULT_SOCKET_TIMEOUT = 60
DEFAULT_SHUTDOWN_GRACE_SECONDS = 30


@dataclass(frozen=True)
class ServerConfig:
    """Everything the server core reads at startup."""

    bind_address: str = DEFAULT_ADDR
    bind_port: int = DEFAULT_PORT
    default_file: str = DEFAULT_FILE
    not_found_file: Optional[str] = None
    max_concurrent_handlers: Optional[int] = None
    max_requests: Optional[int] = None
    directory: str = "."
    socket_timeout: Optional[float] = DEFAULT_SOCKET_TIMEOUT
    shutdown_grace_seconds: Optional[float] = DEFAULT_SHUTDOWN_GRACE_SECONDS


def _number(value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value} is not a valid number!") from exc


def positive_int(value: str) -> int:
    """argparse type accepting integers greater than zero."""
    number = _number(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not integer greater than 0!")
    return number


def non_negative_int(value: str) -> int:
    """argparse type accepting zero and positive integers."""
    number = _number(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value} is not a valid number!")
    return number


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(prog="qst", description="Quick static file server")
    parser.add_argument(
        "-a",
        "--addr",
        default=_env_str("QST_ADDR", DEFAULT_ADDR),
        help="Address to bind",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=os.getenv("QST_PORT", str(DEFAULT_PORT)),
        help="Port to bind",
    )
    parser.add_argument(
        "-f",
        "--default-file",
        default=_env_str("QST_DEFAULT_FILE", DEFAULT_FILE),
        help="File served for the / target",
    )
    parser.add_argument(
        "-e",
        "--err404-file",
        default=_env_str("QST_ERR404_FILE", None),
        help="File whose content is sent with 404 responses",
    )
    parser.add_argument(
        "-t",
        "--max-threads",
        type=positive_int,
        default=os.getenv("QST_MAX_THREADS"),
        help="Maximum number of concurrently running handlers",
    )
    parser.add_argument(
        "-l",
        "--limit-requests",
        type=non_negative_int,
        default=os.getenv("QST_LIMIT_REQUESTS"),
        help="Stop after this many connections have been admitted",
    )
    parser.add_argument(
        "-d",
        "--directory",
        default=_env_str("QST_DIRECTORY", "."),
        help="Directory files are served from",
    )
    parser.add_argument(
        "--socket-timeout",
        type=positive_int,
        default=os.getenv("QST_SOCKET_TIMEOUT", str(DEFAULT_SOCKET_TIMEOUT)),
        help="Socket timeout in seconds for reading a request",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=non_negative_int,
        default=os.getenv(
            "QST_SHUTDOWN_GRACE_SECONDS", str(DEFAULT_SHUTDOWN_GRACE_SECONDS)
        ),
        help="Seconds to wait for running handlers when stopping",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("QST_LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=os.getenv("QST_LOG_DESTINATION", "stdout"),
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-json",
        action=argparse.BooleanOptionalAction,
        default=_env_bool("QST_LOG_JSON", True),
        help="Emit structured JSON log lines",
    )
    return parser.parse_args(argv)


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    """Translate parsed CLI arguments into a :class:`ServerConfig`."""
    return ServerConfig(
        bind_address=args.addr,
        bind_port=args.port,
        default_file=args.default_file,
        not_found_file=args.err404_file,
        max_concurrent_handlers=args.max_threads,
        max_requests=args.limit_requests,
        directory=args.directory,
        socket_timeout=args.socket_timeout,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
    )
