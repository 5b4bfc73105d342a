"""Climate API client that runs live, recording, or replaying."""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from types import TracebackType

import httpx

from climate_recorder._types import ExecutionMode, RequestDescriptor
from climate_recorder.errors import ClientClosedError
from climate_recorder.parser import parse_rainfall
from climate_recorder.player import InteractionPlayer
from climate_recorder.recorder import InteractionRecorder
from climate_recorder.store import TranscriptStore
from climate_recorder.transport import DEFAULT_TIMEOUT, Exchange, HttpTransport

logger = logging.getLogger("climate_recorder.client")

DEFAULT_BASE_URL = "http://climatedataapi.worldbank.org"
RAINFALL_PATH = "/climateweb/rest/v1/country/annualavg/pr/{start}/{end}/{region}.xml"


def rainfall_request(region: str, start_year: int, end_year: int) -> RequestDescriptor:
    """Build the request descriptor for one region and year range."""
    return RequestDescriptor(
        path=RAINFALL_PATH.format(start=start_year, end=end_year, region=region)
    )


class ClimateClient:
    """Rainfall client for the World Bank climate data API.

    The execution mode is chosen once, at construction:

    - ``direct``: every call goes to ``base_url``; no transcript is read or written.
    - ``record``: calls go to ``base_url`` and successful exchanges are saved
      to ``store`` under ``test_case_id`` when the client is closed.
    - ``playback``: calls are answered from the stored transcript for
      ``test_case_id``; no network access happens.

    Usage::

        store = TranscriptStore("tests/transcripts")
        with ClimateClient("playback", store=store, test_case_id="brazil") as client:
            client.fetch_average_rainfall("BRA", 1990, 1991)
    """

    def __init__(
        self,
        mode: ExecutionMode | str = ExecutionMode.DIRECT,
        *,
        base_url: str = DEFAULT_BASE_URL,
        store: TranscriptStore | None = None,
        test_case_id: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.Client | None = None,
        ignore_params: Collection[str] = (),
        redact_env: Sequence[str] = (),
        redact_patterns: Sequence[str] = (),
    ) -> None:
        self._mode = ExecutionMode(mode)
        self._closed = False

        self._exchange: Exchange
        if self._mode == ExecutionMode.DIRECT:
            # Direct clients ignore any store they are handed
            self._exchange = HttpTransport(base_url, timeout=timeout, http_client=http_client)
        elif store is None or not test_case_id:
            raise ValueError(f"{self._mode} mode requires a transcript store and a test case id")
        elif self._mode == ExecutionMode.PLAYBACK:
            self._exchange = InteractionPlayer.from_store(
                store, test_case_id, ignore_params=ignore_params
            )
        else:
            self._exchange = InteractionRecorder(
                HttpTransport(base_url, timeout=timeout, http_client=http_client),
                store,
                test_case_id,
                redact_env=redact_env,
                redact_patterns=redact_patterns,
            )

        logger.debug("Client ready (%s mode, test case %s)", self._mode, test_case_id)

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self, *, commit: bool = True) -> None:
        """End the run. Recording clients save their transcript when ``commit`` is true."""
        if self._closed:
            return
        self._closed = True
        self._exchange.close(commit=commit)

    def __enter__(self) -> ClimateClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close(commit=exc_type is None)

    # -- Rainfall ------------------------------------------------------------

    def fetch_average_rainfall(
        self, region: str, start_year: int, end_year: int
    ) -> dict[int, float]:
        """Return ``{year: average annual rainfall (mm)}`` for a region and year range."""
        if self._closed:
            raise ClientClosedError("Client is closed")
        region = region.strip()
        if not region:
            raise ValueError("region must not be empty")
        if start_year > end_year:
            raise ValueError(f"start_year {start_year} is after end_year {end_year}")

        interaction = self._exchange.send(rainfall_request(region, start_year, end_year))
        return parse_rainfall(
            interaction.response_body, region=region, start_year=start_year, end_year=end_year
        )

    def get_average_annual_rainfall(self, region: str, start_year: int, end_year: int) -> float:
        """Average of all annual values in the range.

        A range the service has no data for raises ``DateRangeNotSupported``.
        """
        values = self.fetch_average_rainfall(region, start_year, end_year)
        return sum(values.values()) / len(values)

    def get_average_annual_rainfall_for_two(
        self, first_region: str, second_region: str, start_year: int, end_year: int
    ) -> tuple[float, float]:
        first = self.get_average_annual_rainfall(first_region, start_year, end_year)
        second = self.get_average_annual_rainfall(second_region, start_year, end_year)
        return first, second
