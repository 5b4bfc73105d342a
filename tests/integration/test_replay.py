"""Integration tests: replay server and CLI against checked-in transcripts."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from climate_recorder.cli import fetch as fetch_cmd
from climate_recorder.cli import inspect as inspect_cmd
from climate_recorder.client import ClimateClient
from climate_recorder.errors import HttpError
from climate_recorder.player import InteractionPlayer
from climate_recorder.replayer import create_replay_app
from climate_recorder.store import TranscriptStore
from tests.conftest import TRANSCRIPTS_DIR, UvicornServer, find_free_port


def _start_replay(
    store: TranscriptStore, test_case_id: str, path_prefix: str = ""
) -> tuple[UvicornServer, InteractionPlayer]:
    player = InteractionPlayer.from_store(store, test_case_id)
    app = create_replay_app(player, path_prefix=path_prefix)
    server = UvicornServer(app, find_free_port())
    server.start()
    return server, player


@pytest.fixture
def europe_server(
    fixture_store: TranscriptStore,
) -> Generator[tuple[str, InteractionPlayer], None, None]:
    server, player = _start_replay(fixture_store, "great_britain_and_france_1980_1999")
    try:
        yield server.url, player
    finally:
        server.stop()


class TestReplayServer:
    def test_direct_client_against_replay_server(
        self, europe_server: tuple[str, InteractionPlayer]
    ) -> None:
        url, player = europe_server

        with ClimateClient("direct", base_url=url) as client:
            gbr, fra = client.get_average_annual_rainfall_for_two("gbr", "fra", 1980, 1999)

        assert gbr == pytest.approx(988.0)
        assert fra == pytest.approx(913.0)
        assert player.all_consumed

    def test_out_of_order_request_is_server_error(
        self, europe_server: tuple[str, InteractionPlayer]
    ) -> None:
        url, player = europe_server

        with ClimateClient("direct", base_url=url) as client:
            with pytest.raises(HttpError) as exc_info:
                client.fetch_average_rainfall("fra", 1980, 1999)

        assert exc_info.value.status == 500
        assert "gbr.xml" in exc_info.value.body
        assert player.position == 0

    def test_base_url_with_path_prefix(self, fixture_store: TranscriptStore) -> None:
        server, player = _start_replay(fixture_store, "brazil_1990_1991", path_prefix="/api/")
        try:
            with ClimateClient("direct", base_url=f"{server.url}/api") as client:
                values = client.fetch_average_rainfall("BR", 1990, 1991)
        finally:
            server.stop()

        assert values == {1990: 1978.0, 1991: 1764.3}
        assert player.all_consumed

    def test_recording_through_replay_server(
        self, europe_server: tuple[str, InteractionPlayer], store: TranscriptStore
    ) -> None:
        url, _ = europe_server

        with ClimateClient("record", base_url=url, store=store, test_case_id="copy") as client:
            client.fetch_average_rainfall("gbr", 1980, 1999)

        with ClimateClient("playback", store=store, test_case_id="copy") as client:
            assert client.fetch_average_rainfall("gbr", 1980, 1999) == {1980: 988.0}


class TestInspectCli:
    def test_inspect_output(self) -> None:
        runner = CliRunner()
        result = runner.invoke(
            inspect_cmd, [str(TRANSCRIPTS_DIR / "great_britain_and_france_1980_1999.json")]
        )

        assert result.exit_code == 0
        output = result.output
        assert "great_britain_and_france_1980_1999.json" in output
        assert "Recorded:  2026-10-17 10:05:00" in output
        assert "Interactions (2):" in output
        assert "1. GET /climateweb/rest/v1/country/annualavg/pr/1980/1999/gbr.xml -> 200" in output
        assert "2. GET /climateweb/rest/v1/country/annualavg/pr/1980/1999/fra.xml -> 200" in output

    def test_inspect_missing_file(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(inspect_cmd, [str(tmp_path / "nope.json")])

        assert result.exit_code == 1
        assert "transcript file not found" in result.output


PLAYBACK_ARGS = ["--region", "BR", "--start", "1990", "--end", "1991", "--mode", "playback"]


class TestFetchCli:
    def test_playback(self) -> None:
        result = CliRunner().invoke(
            fetch_cmd,
            [
                *PLAYBACK_ARGS,
                "--transcripts",
                str(TRANSCRIPTS_DIR),
                "--test-case",
                "brazil_1990_1991",
            ],
        )

        assert result.exit_code == 0
        assert "1990\t1978.0" in result.output
        assert "1991\t1764.3" in result.output

    def test_playback_without_transcript(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            fetch_cmd,
            [*PLAYBACK_ARGS, "--transcripts", str(tmp_path)],
        )

        assert result.exit_code == 1
        assert "No transcript recorded for 'BR_1990_1991'" in result.output
