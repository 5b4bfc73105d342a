"""Exception hierarchy for climate-recorder."""

from __future__ import annotations

from pathlib import Path

from climate_recorder._types import RequestDescriptor


class ClimateError(Exception):
    """Base class for every error raised by climate-recorder."""


class NetworkError(ClimateError):
    """The transport failed before a response arrived (connect, timeout, protocol)."""


class HttpError(ClimateError):
    """The service answered with a non-success status."""

    def __init__(self, status: int, body: str, request: RequestDescriptor | None = None) -> None:
        self.status = status
        self.body = body
        self.request = request
        target = f" for {request}" if request is not None else ""
        snippet = body[:200]
        super().__init__(f"HTTP {status}{target}: {snippet}")


class TranscriptNotFound(ClimateError, LookupError):
    """No transcript is stored for the requested test case."""

    def __init__(self, test_case_id: str, path: Path) -> None:
        self.test_case_id = test_case_id
        self.path = path
        super().__init__(f"No transcript recorded for '{test_case_id}' (expected {path})")


class TranscriptFormatError(ClimateError):
    """A stored transcript could not be read back."""


class TranscriptMismatch(ClimateError):
    """The next recorded request differs from the one being made."""

    def __init__(self, expected: RequestDescriptor, actual: RequestDescriptor, index: int) -> None:
        self.expected = expected
        self.actual = actual
        self.index = index
        super().__init__(
            f"Interaction {index + 1} does not match the transcript: "
            f"expected {expected}, got {actual}. Re-record the transcript."
        )


class TranscriptExhausted(ClimateError):
    """More requests were made than the transcript holds."""

    def __init__(self, recorded: int) -> None:
        self.recorded = recorded
        super().__init__(
            f"Transcript exhausted: all {recorded} recorded interaction(s) were already replayed"
        )


class ParseError(ClimateError):
    """The response body does not contain the expected rainfall structure."""


class DateRangeNotSupported(ClimateError):
    """The service has no rainfall data for the requested year range."""

    def __init__(self, start_year: int, end_year: int) -> None:
        self.start_year = start_year
        self.end_year = end_year
        super().__init__(f"Date range {start_year}-{end_year} not supported")


class RegionNotRecognized(ClimateError):
    """The service does not know the requested region code."""

    def __init__(self, region: str) -> None:
        self.region = region
        super().__init__(f"Region '{region}' not recognized by the climate service")


class ClientClosedError(ClimateError):
    """A call was made on a client that has already been closed."""
