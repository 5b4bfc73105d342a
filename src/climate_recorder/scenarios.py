"""YAML scenario parsing, validation, and execution for record-scenarios."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import BaseModel, Field, model_validator

from climate_recorder._types import ExecutionMode
from climate_recorder.client import DEFAULT_BASE_URL, ClimateClient
from climate_recorder.errors import DateRangeNotSupported, RegionNotRecognized
from climate_recorder.store import TranscriptStore

logger = logging.getLogger("climate_recorder.scenarios")

SCENARIOS_FORMAT_VERSION = "1.0"

# ---------------------------------------------------------------------------
# YAML schema models
# ---------------------------------------------------------------------------


class RainfallQuery(BaseModel):
    region: str
    start_year: int
    end_year: int

    @model_validator(mode="after")
    def _check_range(self) -> RainfallQuery:
        if self.start_year > self.end_year:
            raise ValueError(f"start_year {self.start_year} is after end_year {self.end_year}")
        return self


class RedactConfig(BaseModel):
    env: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)


class Scenario(BaseModel):
    description: str = ""
    queries: list[RainfallQuery] = Field(min_length=1)


class ScenariosFile(BaseModel):
    schema_version: str = SCENARIOS_FORMAT_VERSION
    target: str = DEFAULT_BASE_URL
    redact: RedactConfig = Field(default_factory=RedactConfig)
    scenarios: dict[str, Scenario]

    @model_validator(mode="after")
    def _check_schema_version(self) -> ScenariosFile:
        expected_major = SCENARIOS_FORMAT_VERSION.split(".")[0]
        actual_major = self.schema_version.split(".")[0]
        if actual_major != expected_major:
            raise ValueError(
                f"Incompatible scenarios schema version '{self.schema_version}' "
                f"(expected {expected_major}.x). "
                f"Update climate-recorder or fix the schema_version field."
            )
        return self


# ---------------------------------------------------------------------------
# Scenario runner
# ---------------------------------------------------------------------------


def _run_single_scenario(
    name: str,
    scenario: Scenario,
    scenarios_file: ScenariosFile,
    store: TranscriptStore,
    http_client: httpx.Client | None,
) -> int:
    """Record one scenario. Returns the number of interactions captured."""
    with ClimateClient(
        ExecutionMode.RECORD,
        base_url=scenarios_file.target,
        store=store,
        test_case_id=name,
        http_client=http_client,
        redact_env=scenarios_file.redact.env,
        redact_patterns=scenarios_file.redact.patterns,
    ) as client:
        for query in scenario.queries:
            try:
                client.fetch_average_rainfall(query.region, query.start_year, query.end_year)
            except (RegionNotRecognized, DateRangeNotSupported) as exc:
                # The exchange itself succeeded and was captured
                logger.info("  %s: %s", name, exc)

    count = len(store.load(name).interactions) if store.exists(name) else 0
    logger.info("  %s -> %s (%d interactions)", name, store.path_for(name).name, count)
    return count


def load_scenarios_file(path: Path) -> ScenariosFile:
    """Parse and validate a YAML scenarios file."""
    raw: Any = yaml.safe_load(path.read_text())
    if not isinstance(raw, dict):
        raise ValueError(f"Scenarios file must be a YAML mapping, got {type(raw).__name__}")
    return ScenariosFile.model_validate(raw)


def run_scenarios(
    scenarios_file: ScenariosFile,
    output_dir: Path,
    *,
    http_client: httpx.Client | None = None,
) -> dict[str, int]:
    """Run all scenarios and return {name: interaction_count} for each."""
    store = TranscriptStore(output_dir)
    results: dict[str, int] = {}
    for name, scenario in scenarios_file.scenarios.items():
        results[name] = _run_single_scenario(name, scenario, scenarios_file, store, http_client)
    return results
