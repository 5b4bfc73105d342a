"""File-backed storage of transcripts, one JSON file per test case."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from climate_recorder._types import Transcript
from climate_recorder._utils import load_transcript, save_transcript
from climate_recorder.errors import TranscriptNotFound

logger = logging.getLogger("climate_recorder.store")


def transcript_filename(test_case_id: str) -> str:
    """Map a test-case identity to a stable file name.

    Characters outside ``[A-Za-z0-9._~-]`` are percent-encoded (``%`` included),
    so distinct identities never share a file.
    """
    if not test_case_id.strip():
        raise ValueError("test case id must not be empty")
    return quote(test_case_id, safe="") + ".json"


class TranscriptStore:
    """Reads and writes transcripts under a root directory.

    ``save`` replaces whatever was stored for the identity before; re-recording
    never merges. The store does no locking: runs sharing an identity must not
    overlap.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, test_case_id: str) -> Path:
        return self.root / transcript_filename(test_case_id)

    def exists(self, test_case_id: str) -> bool:
        return self.path_for(test_case_id).is_file()

    def save(self, test_case_id: str, transcript: Transcript) -> Path:
        path = self.path_for(test_case_id)
        save_transcript(transcript, path)
        logger.info("Saved %d interactions to %s", len(transcript.interactions), path)
        return path

    def load(self, test_case_id: str) -> Transcript:
        path = self.path_for(test_case_id)
        if not path.is_file():
            raise TranscriptNotFound(test_case_id, path)
        transcript = load_transcript(path)
        logger.debug("Loaded %d interactions from %s", len(transcript.interactions), path)
        return transcript
