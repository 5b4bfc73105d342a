"""Transcript file I/O shared by the store and the CLI."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from climate_recorder._types import Transcript
from climate_recorder.errors import TranscriptFormatError


def load_transcript(path: Path) -> Transcript:
    """Load and validate a transcript from a JSON file."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return Transcript.model_validate(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
        raise TranscriptFormatError(f"{path}: not a valid transcript ({exc})") from exc


def save_transcript(transcript: Transcript, path: Path) -> None:
    """Serialize a transcript to a JSON file, replacing any previous one in a single step."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = transcript.model_dump(mode="json")
    text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

