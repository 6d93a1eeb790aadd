import os
import socket
import subprocess
import sys
import time
from pathlib import Path

import httpx
import pytest
from loguru import logger


REPO_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def log_records():
    """Capture loguru records emitted during a test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def server_env() -> dict[str, str]:
    """Environment for a child `python -m mcp_datetime` that can import the package from the checkout."""
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT), env.get("PYTHONPATH")]))
    for name in ("PORT", "MCP_DATETIME_PORT", "MCP_DATETIME_PREFIX", "MCP_DATETIME_TRANSPORT"):
        env.pop(name, None)
    return env


def start_sse_server(port: int, *args: str, stderr=subprocess.PIPE) -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, "-m", "mcp_datetime", "--sse", f"--port={port}", *args],
        cwd=REPO_ROOT,
        env=server_env(),
        stdout=subprocess.DEVNULL,
        stderr=stderr,
        text=True,
    )


def wait_until_ready(process: subprocess.Popen, info_url: str, timeout: float = 20.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if process.poll() is not None:
            raise RuntimeError(f"Server exited early with code {process.returncode}")
        try:
            if httpx.get(info_url, timeout=1.0).status_code == 200:
                return
        except httpx.HTTPError:
            pass
        time.sleep(0.1)
    raise RuntimeError(f"Server did not answer {info_url} within {timeout}s")


@pytest.fixture
def sse_server():
    """Run the SSE server in a child process under the /dt prefix; yields its base URL."""
    port = free_port()
    process = start_sse_server(port, "--prefix=/dt", stderr=subprocess.DEVNULL)
    base_url = f"http://127.0.0.1:{port}/dt"
    try:
        wait_until_ready(process, f"{base_url}/info")
        yield base_url
    finally:
        process.terminate()
        try:
            process.wait(timeout=15)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
