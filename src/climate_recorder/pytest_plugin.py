"""Pytest plugin for climate-recorder (registered via pytest11 entry point).

Runs the same test against the live service, records it, or replays it,
depending on ``--climate-mode``:

    @pytest.mark.climate_transcript("brazil_1990_1991")
    def test_brazil(climate_client):
        assert climate_client.fetch_average_rainfall("BRA", 1990, 1991) == {...}

Without the marker the transcript is named after the test module, class and
function.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from climate_recorder._types import ExecutionMode
from climate_recorder.client import DEFAULT_BASE_URL, ClimateClient
from climate_recorder.errors import TranscriptNotFound
from climate_recorder.store import TranscriptStore

_REPORT_ATTR = "_climate_recorder_call_report"


# ---------------------------------------------------------------------------
# pytest CLI options
# ---------------------------------------------------------------------------


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("climate-recorder", "Climate API transcript recording and playback")
    group.addoption(
        "--climate-mode",
        default=ExecutionMode.PLAYBACK.value,
        choices=[m.value for m in ExecutionMode],
        help=(
            "playback: serve from transcripts (default). "
            "record: call the service and save transcripts. "
            "direct: call the service, no transcripts."
        ),
    )
    group.addoption(
        "--climate-base-url",
        default=DEFAULT_BASE_URL,
        help="Climate service URL for direct/record modes.",
    )
    group.addoption(
        "--climate-transcripts",
        default=None,
        help="Transcript directory (default: 'transcripts' next to each test file).",
    )


# ---------------------------------------------------------------------------
# Marker registration
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "climate_transcript(name, *, ignore_params=None): name the transcript bound to this test",
    )


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Generator[None, None, None]:
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        setattr(item, _REPORT_ATTR, report)


# ---------------------------------------------------------------------------
# Public fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def climate_store(request: pytest.FixtureRequest) -> TranscriptStore:
    """Transcript store for the current test."""
    configured = request.config.getoption("--climate-transcripts")
    if configured:
        return TranscriptStore(Path(configured))
    return TranscriptStore(request.path.parent / "transcripts")


@pytest.fixture
def climate_test_case_id(request: pytest.FixtureRequest) -> str:
    """Transcript identity: the marker's name, else module, class and test name.

    ``tests/test_fetch.py::TestBrazil::test_range[1990]`` becomes
    ``test_fetch__TestBrazil__test_range[1990]``.
    """
    marker = request.node.get_closest_marker("climate_transcript")
    if marker is not None and marker.args:
        return str(marker.args[0])
    _, _, qualname = request.node.nodeid.partition("::")
    return "__".join([request.path.stem, *qualname.split("::")])


@pytest.fixture
def climate_client(
    request: pytest.FixtureRequest,
    climate_store: TranscriptStore,
    climate_test_case_id: str,
) -> Generator[ClimateClient, None, None]:
    """A ClimateClient in the session's ``--climate-mode``.

    In record mode the transcript is saved only when the test passes.
    """
    mode = ExecutionMode(request.config.getoption("--climate-mode"))
    marker = request.node.get_closest_marker("climate_transcript")
    ignore_params = tuple(marker.kwargs.get("ignore_params") or ()) if marker else ()

    try:
        client = ClimateClient(
            mode,
            base_url=request.config.getoption("--climate-base-url"),
            store=climate_store,
            test_case_id=climate_test_case_id,
            ignore_params=ignore_params,
        )
    except TranscriptNotFound as exc:
        pytest.fail(f"{exc}. Run with --climate-mode=record to create it.")

    try:
        yield client
    finally:
        report = getattr(request.node, _REPORT_ATTR, None)
        client.close(commit=report is not None and report.passed)
