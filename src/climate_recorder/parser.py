"""Extract rainfall values from climate API XML responses.

The service answers with a ``<list>`` of records. Per-year records carry
``<year>`` and ``<data>``; model-average records carry ``<fromYear>`` and
``<annualData><double>``. Several records for the same year (one per
circulation model) are averaged.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections import defaultdict

from climate_recorder.errors import DateRangeNotSupported, ParseError, RegionNotRecognized

INVALID_REGION_PREFIX = "Invalid country code"


def _child_text(record: ET.Element, *paths: str) -> str | None:
    for path in paths:
        node = record.find(path)
        if node is not None and node.text is not None and node.text.strip():
            return node.text.strip()
    return None


def parse_rainfall(body: str, *, region: str, start_year: int, end_year: int) -> dict[int, float]:
    """Parse a response body into ``{year: rainfall_mm}``, ordered by year."""
    if body.lstrip().startswith(INVALID_REGION_PREFIX):
        raise RegionNotRecognized(region)

    try:
        root = ET.fromstring(body)
    except ET.ParseError as exc:
        raise ParseError(f"Malformed rainfall XML: {exc}") from exc

    if root.tag != "list":
        raise ParseError(f"Expected a <list> root element, got <{root.tag}>")

    samples: dict[int, list[float]] = defaultdict(list)
    for record in root:
        year_text = _child_text(record, "year", "fromYear")
        value_text = _child_text(record, "data", "annualData/double")
        if year_text is None or value_text is None:
            raise ParseError(f"Record <{record.tag}> has no year/value")
        try:
            samples[int(year_text)].append(float(value_text))
        except ValueError as exc:
            raise ParseError(f"Record <{record.tag}> has a non-numeric field: {exc}") from exc

    if not samples:
        raise DateRangeNotSupported(start_year, end_year)

    return {year: sum(values) / len(values) for year, values in sorted(samples.items())}
