"""Shared test fixtures for climate-recorder."""

from __future__ import annotations

import re
import socket
import threading
import time
from collections.abc import Generator
from pathlib import Path
from typing import Any

import httpx
import pytest
import uvicorn

from climate_recorder.store import TranscriptStore

TRANSCRIPTS_DIR = Path(__file__).parent / "transcripts"

_RAINFALL_PATH = re.compile(
    r"^/climateweb/rest/v1/country/annualavg/pr/"
    r"(?P<start>\d+)/(?P<end>\d+)/(?P<region>[^/]+)\.xml$"
)


def find_free_port() -> int:
    """Bind to port 0 and return the OS-assigned port number."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port: int = s.getsockname()[1]
        return port


class UvicornServer:
    """Runs an ASGI app under uvicorn in a daemon thread."""

    def __init__(self, app: Any, port: int, *, log_level: str = "warning") -> None:
        self.port = port
        self._config = uvicorn.Config(app, host="127.0.0.1", port=port, log_level=log_level)
        self._server = uvicorn.Server(self._config)
        self._thread = threading.Thread(target=self._server.run, daemon=True)

    def start(self, timeout: float = 10.0) -> None:
        self._thread.start()
        deadline = time.monotonic() + timeout
        while not self._server.started:
            if time.monotonic() > deadline:
                raise RuntimeError(f"Server failed to start on port {self.port} within {timeout}s")
            time.sleep(0.05)

    def stop(self) -> None:
        self._server.should_exit = True
        self._thread.join(timeout=5.0)

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}"


def rainfall_xml(values: dict[int, float]) -> str:
    """Render per-year values the way the climate service does."""
    records = "".join(
        f"<domain.web.V1WebCru><year>{year}</year><data>{value}</data></domain.web.V1WebCru>"
        for year, value in values.items()
    )
    return f"<list>{records}</list>"


class FakeClimateService:
    """Emulated climate API served through ``httpx.MockTransport``.

    Every request that reaches the transport is appended to ``calls``, so a
    test can assert that no network access happened.
    """

    def __init__(self, data: dict[str, dict[int, float]]) -> None:
        self.data = data
        self.calls: list[httpx.Request] = []
        self.status_overrides: dict[str, int] = {}
        self.unreachable: set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        match = _RAINFALL_PATH.match(request.url.path)
        if match is None:
            return httpx.Response(404, text="Not Found")

        region = match["region"]
        if region in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if region in self.status_overrides:
            return httpx.Response(self.status_overrides[region], text="Service Unavailable")

        headers = {
            "content-type": "application/xml",
            "date": "Sat, 17 Oct 2026 10:00:00 GMT",
            "set-cookie": "JSESSIONID=abc123; Path=/",
        }
        if region not in self.data:
            return httpx.Response(
                200, text="Invalid country code. Three letters are required", headers=headers
            )

        start, end = int(match["start"]), int(match["end"])
        values = {y: v for y, v in self.data[region].items() if start <= y <= end}
        return httpx.Response(200, text=rainfall_xml(values), headers=headers)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def service() -> FakeClimateService:
    return FakeClimateService(
        {
            "BR": {1990: 1978.0, 1991: 1764.3},
            "gbr": {1980: 988.0, 1981: 990.0},
            "fra": {1980: 913.0, 1981: 915.0},
        }
    )


@pytest.fixture
def http_client(service: FakeClimateService) -> Generator[httpx.Client, None, None]:
    client = service.client()
    try:
        yield client
    finally:
        client.close()


@pytest.fixture
def store(tmp_path: Path) -> TranscriptStore:
    return TranscriptStore(tmp_path / "transcripts")


@pytest.fixture
def fixture_store() -> TranscriptStore:
    """Store over the checked-in transcripts."""
    return TranscriptStore(TRANSCRIPTS_DIR)
