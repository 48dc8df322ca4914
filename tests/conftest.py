"""Shared pytest fixtures for integration and unit tests."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Generator, Optional, TypedDict

import pytest

from tests.utils.http import reserve_port, wait_for_log_event

if TYPE_CHECKING:
    from _pytest.tmpdir import TempPathFactory

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SERVER_ENTRYPOINT = PROJECT_ROOT / "main.py"


class ServerProcessInfo(TypedDict):
    """Metadata describing a running server fixture instance."""

    base_url: str
    host: str
    port: int
    directory: Path
    process: subprocess.Popen
    log_file: Path


def populate_site(directory: Path) -> None:
    """Write the small static site the integration tests request."""

    (directory / "index.html").write_text("<h1>Hello from qst</h1>")
    (directory / "test.js").write_text("console.log('hi');")
    (directory / "stuff.css").write_text("body { margin: 0; }")
    (directory / "my page.html").write_text("spaced out")
    (directory / "_private.html").write_text("internal only")
    (directory / "404.html").write_text("<h1>Nothing here</h1>")


def launch_server(
    directory: Path, extra_args: Optional[list[str]] = None
) -> ServerProcessInfo:
    """Start ``main.py`` on a free port and wait until it is listening."""

    host = "127.0.0.1"
    port = reserve_port(host)
    log_file = directory / "server.log"
    args = [
        sys.executable,
        str(SERVER_ENTRYPOINT),
        "--addr",
        host,
        "--port",
        str(port),
        "--directory",
        str(directory),
        "--log-destination",
        str(log_file),
    ]
    if extra_args:
        args.extend(extra_args)

    process = subprocess.Popen(
        args,
        cwd=PROJECT_ROOT,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )
    try:
        wait_for_log_event(log_file, "server_listening")
    except RuntimeError:
        process.terminate()
        _, stderr = process.communicate(timeout=5)
        print(f"\nServer stderr:\n{stderr}")
        raise
    return {
        "base_url": f"http://{host}:{port}",
        "host": host,
        "port": port,
        "directory": directory,
        "process": process,
        "log_file": log_file,
    }


def _stop(process: subprocess.Popen) -> None:
    if process.poll() is None:
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
    process.communicate()


@pytest.fixture(name="server_factory")
def _server_factory(
    tmp_path_factory: "TempPathFactory",
) -> Generator[Callable[..., ServerProcessInfo], None, None]:
    """Launch server processes with custom flags; all are stopped afterwards."""

    processes: list[subprocess.Popen] = []

    def factory(*extra_args: str) -> ServerProcessInfo:
        directory = tmp_path_factory.mktemp("site")
        populate_site(directory)
        info = launch_server(directory, list(extra_args))
        processes.append(info["process"])
        return info

    yield factory
    for process in processes:
        _stop(process)


@pytest.fixture(name="server_process")
def _server_process(
    server_factory: Callable[..., ServerProcessInfo],
) -> ServerProcessInfo:
    """A server with a 404 page configured."""

    return server_factory("--err404-file", "404.html")


@pytest.fixture()
def base_url(server_process: ServerProcessInfo) -> str:
    """Expose the running server base URL to integration tests."""

    return server_process["base_url"]
