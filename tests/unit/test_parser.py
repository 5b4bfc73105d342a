"""Unit tests for rainfall XML parsing."""

from __future__ import annotations

import pytest

from climate_recorder.errors import DateRangeNotSupported, ParseError, RegionNotRecognized
from climate_recorder.parser import parse_rainfall
from tests.conftest import rainfall_xml


def _parse(body: str) -> dict[int, float]:
    return parse_rainfall(body, region="BR", start_year=1990, end_year=1991)


class TestPerYearRecords:
    def test_values_by_year(self) -> None:
        assert _parse(rainfall_xml({1990: 1978.0, 1991: 1764.3})) == {1990: 1978.0, 1991: 1764.3}

    def test_sorted_by_year(self) -> None:
        result = _parse(rainfall_xml({1991: 2.0, 1990: 1.0}))
        assert list(result) == [1990, 1991]


class TestModelAverageRecords:
    def test_models_for_same_period_are_averaged(self) -> None:
        body = (
            "<list>"
            "<domain.web.AnnualGcmDatum><gcm>a</gcm><fromYear>1980</fromYear>"
            "<toYear>1999</toYear><annualData><double>990.0</double></annualData>"
            "</domain.web.AnnualGcmDatum>"
            "<domain.web.AnnualGcmDatum><gcm>b</gcm><fromYear>1980</fromYear>"
            "<toYear>1999</toYear><annualData><double>986.0</double></annualData>"
            "</domain.web.AnnualGcmDatum>"
            "</list>"
        )
        assert _parse(body) == {1980: 988.0}


class TestServiceErrors:
    def test_unknown_region(self) -> None:
        with pytest.raises(RegionNotRecognized) as exc_info:
            parse_rainfall(
                "Invalid country code. Three letters are required",
                region="mde",
                start_year=1980,
                end_year=1999,
            )
        assert exc_info.value.region == "mde"

    def test_empty_list_means_unsupported_range(self) -> None:
        with pytest.raises(DateRangeNotSupported) as exc_info:
            parse_rainfall("<list />", region="gbr", start_year=1985, end_year=1995)

        assert (exc_info.value.start_year, exc_info.value.end_year) == (1985, 1995)
        assert str(exc_info.value) == "Date range 1985-1995 not supported"


class TestMalformedBodies:
    def test_not_xml(self) -> None:
        with pytest.raises(ParseError, match="Malformed"):
            _parse("{'json': true}")

    def test_wrong_root(self) -> None:
        with pytest.raises(ParseError, match="<list>"):
            _parse("<html><body/></html>")

    def test_record_without_value(self) -> None:
        with pytest.raises(ParseError, match="no year/value"):
            _parse("<list><rec><year>1990</year></rec></list>")

    def test_non_numeric_value(self) -> None:
        with pytest.raises(ParseError, match="non-numeric"):
            _parse("<list><rec><year>1990</year><data>lots</data></rec></list>")
