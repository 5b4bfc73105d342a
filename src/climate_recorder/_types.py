"""Transcript data models for climate API interaction recording."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

TRANSCRIPT_FORMAT_VERSION = "1.0"


class ExecutionMode(StrEnum):
    """How a client obtains responses."""

    DIRECT = "direct"
    RECORD = "record"
    PLAYBACK = "playback"


class RequestDescriptor(BaseModel):
    """Identity of one outgoing request: method, target resource and query params."""

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    path: str
    params: dict[str, str] = Field(default_factory=dict)

    def __str__(self) -> str:
        if not self.params:
            return f"{self.method} {self.path}"
        query = "&".join(f"{k}={v}" for k, v in sorted(self.params.items()))
        return f"{self.method} {self.path}?{query}"


class Interaction(BaseModel):
    """A single recorded request/response exchange."""

    model_config = ConfigDict(frozen=True)

    request: RequestDescriptor
    response_status: int = 200
    response_headers: dict[str, str] = Field(default_factory=dict)
    response_body: str = ""
    latency_ms: int = 0

    @property
    def summary(self) -> str:
        """One-line summary for console logging."""
        return f"{self.request} -> {self.response_status} ({self.latency_ms}ms)"


class TranscriptMetadata(BaseModel):
    """Metadata about the recording session."""

    recorded_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    base_url: str = ""
    test_case: str = ""


class Transcript(BaseModel):
    """Ordered interactions captured for one test case."""

    version: str = TRANSCRIPT_FORMAT_VERSION
    metadata: TranscriptMetadata = Field(default_factory=TranscriptMetadata)
    interactions: list[Interaction] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_format_version(self) -> Transcript:
        expected_major = TRANSCRIPT_FORMAT_VERSION.split(".")[0]
        actual_major = self.version.split(".")[0]
        if actual_major != expected_major:
            raise ValueError(
                f"Incompatible transcript format version '{self.version}' "
                f"(expected {expected_major}.x). "
                f"Re-record the transcript with the current version of climate-recorder."
            )
        return self

    def add_interaction(self, interaction: Interaction) -> None:
        """Append an interaction in call order."""
        self.interactions.append(interaction)
