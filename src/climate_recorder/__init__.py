"""climate-recorder: Record and replay climate API rainfall queries for deterministic testing."""

from importlib.metadata import version

from climate_recorder._types import ExecutionMode, Interaction, RequestDescriptor, Transcript
from climate_recorder.client import ClimateClient
from climate_recorder.errors import (
    ClimateError,
    HttpError,
    NetworkError,
    ParseError,
    TranscriptExhausted,
    TranscriptMismatch,
    TranscriptNotFound,
)
from climate_recorder.store import TranscriptStore

__all__ = [
    "ClimateClient",
    "ClimateError",
    "ExecutionMode",
    "HttpError",
    "Interaction",
    "NetworkError",
    "ParseError",
    "RequestDescriptor",
    "Transcript",
    "TranscriptExhausted",
    "TranscriptMismatch",
    "TranscriptNotFound",
    "TranscriptStore",
    "__version__",
]
__version__ = version("climate-recorder")
