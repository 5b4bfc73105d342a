"""The exchange interface and its direct HTTP implementation."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

import httpx

from climate_recorder._types import Interaction, RequestDescriptor
from climate_recorder.errors import HttpError, NetworkError

logger = logging.getLogger("climate_recorder.transport")

DEFAULT_TIMEOUT = 30.0


class Exchange(ABC):
    """Produces a response for a request descriptor.

    Implemented by the direct transport, the recorder and the player, so the
    client can hold any of them without knowing which.
    """

    @abstractmethod
    def send(self, request: RequestDescriptor) -> Interaction:
        """Return the completed exchange for ``request`` or raise."""

    def close(self, *, commit: bool = True) -> None:  # noqa: B027
        """Release resources. ``commit`` is meaningful only when recording."""


class HttpTransport(Exchange):
    """Talks to the live (or emulated) climate service over HTTP."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=httpx.Timeout(timeout, connect=10.0))

    def send(self, request: RequestDescriptor) -> Interaction:
        url = f"{self.base_url}{request.path}"
        logger.debug("-> %s", request)
        start = time.monotonic()

        try:
            resp = self._client.request(
                request.method, url, params=request.params or None
            )
        except httpx.HTTPError as exc:
            logger.error("%s failed: %s", request, exc)
            raise NetworkError(f"{request}: {exc}") from exc

        latency_ms = int((time.monotonic() - start) * 1000)
        logger.debug("<- %d (%dms)", resp.status_code, latency_ms)

        if not resp.is_success:
            raise HttpError(resp.status_code, resp.text, request)

        return Interaction(
            request=request,
            response_status=resp.status_code,
            response_headers=dict(resp.headers),
            response_body=resp.text,
            latency_ms=latency_ms,
        )

    def close(self, *, commit: bool = True) -> None:
        if self._owns_client:
            self._client.close()
