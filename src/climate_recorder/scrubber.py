"""Cleanup and explicit secret redaction for transcripts before they are saved.

Design principles:
- Volatile response headers (date, set-cookie, hop-by-hop) are always dropped;
  they change every run and make recorded fixtures noisy to diff.
- redact_env VAR: replaces the value of a named env var in metadata + responses
- redact_patterns REGEX: replaces regex matches in metadata + responses
- Request descriptors are never modified (preserves playback matching).
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Sequence

from climate_recorder._types import Transcript

logger = logging.getLogger("climate_recorder.scrubber")

_PLACEHOLDER = "[REDACTED]"

VOLATILE_HEADERS = frozenset(
    {
        "date",
        "set-cookie",
        "connection",
        "keep-alive",
        "transfer-encoding",
        "content-length",
        "age",
        "expires",
    }
)


def _compile_patterns(
    *,
    env_vars: Sequence[str],
    regex_patterns: Sequence[str],
) -> list[re.Pattern[str]]:
    """Build regex patterns from explicit env var names and raw regex strings."""
    patterns: list[re.Pattern[str]] = []

    for var_name in env_vars:
        value = os.environ.get(var_name)
        if value is None:
            logger.warning("redact env %s: variable not found in environment, skipping", var_name)
            continue
        if not value:
            logger.warning("redact env %s: variable is empty, skipping", var_name)
            continue
        patterns.append(re.compile(re.escape(value)))

    for raw in regex_patterns:
        try:
            patterns.append(re.compile(raw))
        except re.error as exc:
            logger.warning("redact pattern %r: invalid regex (%s), skipping", raw, exc)

    return patterns


def _redact_string(value: str, patterns: list[re.Pattern[str]]) -> str:
    """Replace all pattern matches in a string."""
    for pat in patterns:
        value = pat.sub(_PLACEHOLDER, value)
    return value


def scrub_transcript(
    transcript: Transcript,
    *,
    drop_headers: frozenset[str] = VOLATILE_HEADERS,
    redact_env: Sequence[str] = (),
    redact_patterns: Sequence[str] = (),
) -> Transcript:
    """Return a new Transcript with volatile headers dropped and redactions applied."""
    data = transcript.model_dump(mode="json")
    patterns = _compile_patterns(env_vars=redact_env, regex_patterns=redact_patterns)

    if patterns:
        data["metadata"]["base_url"] = _redact_string(data["metadata"]["base_url"], patterns)

    request_hits = 0
    for interaction in data["interactions"]:
        kept = interaction["response_headers"].items()
        headers = {k: v for k, v in kept if k.lower() not in drop_headers}
        if patterns:
            headers = {k: _redact_string(v, patterns) for k, v in headers.items()}
            interaction["response_body"] = _redact_string(interaction["response_body"], patterns)

            # Requests are left intact; warn so the author can review them manually
            request_text = str(interaction["request"])
            if any(pat.search(request_text) for pat in patterns):
                request_hits += 1
        interaction["response_headers"] = headers

    if request_hits > 0:
        logger.warning(
            "Redacted values found in %d request(s). "
            "Requests are NOT redacted to preserve playback matching. "
            "Review the transcript manually if needed.",
            request_hits,
        )

    return Transcript.model_validate(data)
