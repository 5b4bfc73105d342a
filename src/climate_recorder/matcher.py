"""Request matching used to validate replayed interactions."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Collection
from typing import Any

from climate_recorder._types import RequestDescriptor


def normalize_params(
    params: dict[str, str], ignore_params: Collection[str] = ()
) -> dict[str, str]:
    """Strip volatile query params (API keys, cache busters) before matching."""
    return {k: v for k, v in params.items() if k not in ignore_params}


def stable_hash(obj: Any) -> str:
    """Produce a deterministic hash of a JSON-serializable object."""
    serialized = json.dumps(obj, sort_keys=True, ensure_ascii=True, default=str)
    return hashlib.sha256(serialized.encode()).hexdigest()[:16]


def match_key_for(request: RequestDescriptor, ignore_params: Collection[str] = ()) -> str:
    """Compute the match key for a request descriptor.

    Key format: ``METHOD path::hash(normalized_params)``
    """
    normalized = normalize_params(request.params, ignore_params)
    return f"{request.method.upper()} {request.path}::{stable_hash(normalized)}"


def requests_match(
    expected: RequestDescriptor,
    actual: RequestDescriptor,
    ignore_params: Collection[str] = (),
) -> bool:
    """True if two descriptors address the same resource with the same params."""
    return match_key_for(expected, ignore_params) == match_key_for(actual, ignore_params)
