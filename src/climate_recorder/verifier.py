"""Verify engine: re-issue recorded requests against a live service and compare responses."""

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass, field

import httpx

from climate_recorder._types import Transcript
from climate_recorder.errors import ClimateError
from climate_recorder.parser import parse_rainfall
from climate_recorder.transport import HttpTransport

logger = logging.getLogger("climate_recorder.verifier")

# Rainfall values are compared with this absolute tolerance (mm).
DEFAULT_TOLERANCE = 1e-6


@dataclass
class InteractionResult:
    """Outcome of verifying a single interaction."""

    index: int
    request: str
    passed: bool
    expected: str | None = None
    actual: str | None = None
    diff: list[str] = field(default_factory=list)


@dataclass
class VerifyResult:
    """Aggregate verification outcome."""

    total: int
    passed: int
    failed: int
    results: list[InteractionResult] = field(default_factory=list)


def _values_or_none(body: str) -> dict[int, float] | None:
    try:
        return parse_rainfall(body, region="?", start_year=0, end_year=0)
    except ClimateError:
        return None


def _diff_values(
    expected: dict[int, float], actual: dict[int, float], tolerance: float
) -> list[str]:
    """Produce human-readable diff lines between two rainfall mappings."""
    diffs: list[str] = []
    for year in sorted(set(expected) | set(actual)):
        if year not in actual:
            diffs.append(f"  {year}: missing in actual (expected {expected[year]})")
        elif year not in expected:
            diffs.append(f"  {year}: unexpected in actual ({actual[year]})")
        elif abs(expected[year] - actual[year]) > tolerance:
            diffs.append(f"  {year}: {expected[year]} != {actual[year]}")
    return diffs


def _diff_bodies(expected: str, actual: str, tolerance: float) -> list[str]:
    """Compare rainfall values when both bodies parse, raw text otherwise."""
    expected_values = _values_or_none(expected)
    actual_values = _values_or_none(actual)
    if expected_values is not None and actual_values is not None:
        return _diff_values(expected_values, actual_values, tolerance)
    if expected == actual:
        return []
    return [
        f"  {line}"
        for line in difflib.unified_diff(
            expected.splitlines(), actual.splitlines(), "recorded", "live", lineterm=""
        )
    ]


def run_verify(
    transcript: Transcript,
    target_url: str | None = None,
    *,
    tolerance: float = DEFAULT_TOLERANCE,
    http_client: httpx.Client | None = None,
) -> VerifyResult:
    """Replay every recorded request against the target and compare responses.

    ``target_url`` defaults to the base URL the transcript was recorded from.
    """
    target = target_url or transcript.metadata.base_url
    if not target:
        raise ValueError("No target URL given and the transcript does not record one")

    results: list[InteractionResult] = []
    transport = HttpTransport(target, http_client=http_client)
    try:
        for idx, interaction in enumerate(transcript.interactions, 1):
            expected = interaction.response_body
            try:
                actual = transport.send(interaction.request).response_body
            except ClimateError as exc:
                diff_lines = [f"  live call failed: {exc}"]
                actual = None
            else:
                diff_lines = _diff_bodies(expected, actual, tolerance)

            passed = not diff_lines
            logger.info("[%d] %s -> %s", idx, interaction.request, "pass" if passed else "FAIL")
            for line in diff_lines:
                logger.debug("  %s", line)

            results.append(
                InteractionResult(
                    index=idx,
                    request=str(interaction.request),
                    passed=passed,
                    expected=expected,
                    actual=actual,
                    diff=diff_lines,
                )
            )
    finally:
        transport.close()

    passed_count = sum(1 for r in results if r.passed)
    return VerifyResult(
        total=len(results),
        passed=passed_count,
        failed=len(results) - passed_count,
        results=results,
    )
