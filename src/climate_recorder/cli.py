"""CLI entry point for climate-recorder."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import uvicorn

from climate_recorder import __version__
from climate_recorder._types import ExecutionMode, Transcript
from climate_recorder._utils import load_transcript
from climate_recorder.client import DEFAULT_BASE_URL, ClimateClient
from climate_recorder.errors import ClimateError
from climate_recorder.player import InteractionPlayer
from climate_recorder.replayer import create_replay_app
from climate_recorder.scenarios import load_scenarios_file, run_scenarios
from climate_recorder.store import TranscriptStore
from climate_recorder.verifier import run_verify


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stderr)


def _load_or_exit(path: Path) -> Transcript:
    if not path.exists():
        click.echo(f"Error: transcript file not found: {path}", err=True)
        raise SystemExit(1)
    try:
        return load_transcript(path)
    except ClimateError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc


@click.group()
@click.version_option(version=__version__, prog_name="climate-recorder")
def main() -> None:
    """Fetch, record, replay, and verify climate API rainfall queries."""


@main.command()
@click.option("--region", required=True, help="ISO3 country code, e.g. BRA.")
@click.option("--start", "start_year", required=True, type=int, help="First year of the range.")
@click.option("--end", "end_year", required=True, type=int, help="Last year of the range.")
@click.option(
    "--mode",
    default=ExecutionMode.DIRECT.value,
    show_default=True,
    type=click.Choice([m.value for m in ExecutionMode]),
    help="direct: live call. record: live call saved to a transcript. playback: from transcript.",
)
@click.option("--base-url", default=DEFAULT_BASE_URL, show_default=True, help="Service URL.")
@click.option(
    "--transcripts",
    default="transcripts",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Transcript directory for record/playback.",
)
@click.option("--test-case", default=None, help="Transcript identity for record/playback.")
@click.option("--verbose", is_flag=True, help="Log every exchange to stderr.")
def fetch(
    region: str,
    start_year: int,
    end_year: int,
    mode: str,
    base_url: str,
    transcripts: Path,
    test_case: str | None,
    verbose: bool,
) -> None:
    """Print annual rainfall for a region and year range."""
    _configure_logging(verbose)

    store: TranscriptStore | None = None
    if mode != ExecutionMode.DIRECT:
        store = TranscriptStore(transcripts)
        test_case = test_case or f"{region}_{start_year}_{end_year}"

    try:
        with ClimateClient(
            mode,
            base_url=base_url,
            store=store,
            test_case_id=test_case,
        ) as client:
            values = client.fetch_average_rainfall(region, start_year, end_year)
    except (ClimateError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    for year, value in values.items():
        click.echo(f"{year}\t{value}")


@main.command()
@click.argument("transcript", type=click.Path(dir_okay=False, path_type=Path))
def inspect(transcript: Path) -> None:
    """Pretty-print a transcript summary."""
    loaded = _load_or_exit(transcript)
    meta = loaded.metadata

    click.echo(transcript.name)

    recorded = meta.recorded_at[:19].replace("T", " ") if meta.recorded_at else "unknown"
    click.echo(f"  Recorded:  {recorded}")
    if meta.test_case:
        click.echo(f"  Test case: {meta.test_case}")
    if meta.base_url:
        click.echo(f"  Target:    {meta.base_url}")

    interactions = loaded.interactions
    click.echo(f"\n  Interactions ({len(interactions)}):")
    for i, interaction in enumerate(interactions, 1):
        click.echo(f"    {i}. {interaction.summary}")


@main.command()
@click.option(
    "--transcript",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to transcript file.",
)
@click.option("--port", default=61417, show_default=True, help="Local server port.")
@click.option(
    "--path-prefix",
    default="",
    help="Path the client's base URL carries, e.g. /api. Stripped before matching.",
)
@click.option("--verbose", is_flag=True, help="Log every replayed request to stderr.")
def replay(transcript: Path, port: int, path_prefix: str, verbose: bool) -> None:
    """Serve a recorded transcript over HTTP, in recorded order."""
    _configure_logging(verbose)

    loaded = _load_or_exit(transcript)
    player = InteractionPlayer(loaded)
    app = create_replay_app(player, path_prefix=path_prefix)

    click.echo(f"Replaying {transcript.name} ({len(loaded.interactions)} interactions)", err=True)
    click.echo(f"Mock server: http://localhost:{port}{path_prefix.rstrip('/')}", err=True)
    click.echo("Press Ctrl+C to stop.\n", err=True)

    try:
        uvicorn.run(app, host="127.0.0.1", port=port, log_level="warning")
    except KeyboardInterrupt:
        pass
    finally:
        if player.all_consumed:
            click.echo("\nAll recorded interactions were consumed.", err=True)
        else:
            click.echo(
                f"\nWarning: {player.remaining} recorded interactions were NOT consumed.",
                err=True,
            )


@main.command()
@click.option(
    "--transcript",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to transcript file.",
)
@click.option("--target", default=None, help="Service URL (defaults to the recorded one).")
@click.option("--verbose", is_flag=True, help="Show full diff for each failing interaction.")
def verify(transcript: Path, target: str | None, verbose: bool) -> None:
    """Re-issue recorded requests against the live service and compare responses."""
    _configure_logging(verbose)

    loaded = _load_or_exit(transcript)
    target = target or loaded.metadata.base_url or None
    click.echo(f"Verifying {transcript.name} against {target}", err=True)

    try:
        result = run_verify(loaded, target)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    click.echo("", err=True)
    for r in result.results:
        status = "PASS" if r.passed else "FAIL"
        click.echo(f"  {r.index}. {r.request} [{status}]", err=True)
        if not r.passed:
            for line in r.diff:
                click.echo(f"    {line}", err=True)

    click.echo(
        f"\nResult: {result.passed}/{result.total} passed, {result.failed} failed",
        err=True,
    )
    if result.failed > 0:
        raise SystemExit(1)


@main.command("record-scenarios")
@click.argument("scenarios_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--output-dir",
    default="transcripts",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory the transcripts are written to.",
)
@click.option("--verbose", is_flag=True, help="Log every exchange to stderr.")
def record_scenarios(scenarios_file: Path, output_dir: Path, verbose: bool) -> None:
    """Record every scenario of a YAML scenarios file into its own transcript."""
    _configure_logging(verbose)

    if not scenarios_file.exists():
        click.echo(f"Error: scenarios file not found: {scenarios_file}", err=True)
        raise SystemExit(1)

    try:
        parsed = load_scenarios_file(scenarios_file)
        click.echo(f"Recording {len(parsed.scenarios)} scenario(s) from {parsed.target}", err=True)
        results = run_scenarios(parsed, output_dir)
    except (ClimateError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    total = sum(results.values())
    click.echo(
        f"\nSaved {total} interactions in {len(results)} transcript(s) to {output_dir}",
        err=True,
    )
