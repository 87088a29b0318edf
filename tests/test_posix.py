import calendar
import io
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from tzdatetime.models import SPAN_MAX, SPAN_MIN
from tzdatetime.posix import (
    PosixTzDateTime,
    PosixTzInfo,
    PosixTzJulianDateTime,
    PosixTzOrdinalDateTime,
)


def _secs(dt: datetime) -> int:
    return calendar.timegm(dt.timetuple())


@pytest.mark.parametrize(
    "posix_datetime, year, expected",
    [
        (PosixTzDateTime(6, 1, 1, 0, 0, 0), 2025, datetime(2025, 6, 2, 0, 0, 0)),
        (PosixTzDateTime(1, 1, 0, 0, 0, 0), 2025, datetime(2025, 1, 5, 0, 0, 0)),
        (PosixTzDateTime(3, 2, 0, 2, 0, 0), 2025, datetime(2025, 3, 9, 2, 0, 0)),
        (PosixTzDateTime(11, 1, 0, 2, 0, 0), 2025, datetime(2025, 11, 2, 2, 0, 0)),
        (PosixTzDateTime(3, 2, 0, 2, 0, 0), 2026, datetime(2026, 3, 8, 2, 0, 0)),
        (PosixTzDateTime(11, 1, 0, 2, 0, 0), 2026, datetime(2026, 11, 1, 2, 0, 0)),
        # First Monday of Feb 2025
        (PosixTzDateTime(2, 1, 1, 0, 0, 0), 2025, datetime(2025, 2, 3, 0, 0, 0)),
        # w=5 means the last occurrence in the month
        (PosixTzDateTime(10, 5, 0, 0, 0, 0), 2025, datetime(2025, 10, 26, 0, 0, 0)),
        (PosixTzDateTime(5, 5, 1, 0, 0, 0), 2025, datetime(2025, 5, 26, 0, 0, 0)),
        (PosixTzDateTime(7, 1, 2, 6, 30, 15), 2025, datetime(2025, 7, 1, 6, 30, 15)),
    ],
)
def test_posix_tz_datetime_to_epoch_secs(posix_datetime, year, expected):
    assert posix_datetime.to_epoch_secs(year) == _secs(expected)


def test_posix_transition_time_supports_extended_hours():
    late = PosixTzDateTime(3, 2, 0, 26, 0, 0).to_epoch_secs(2024)
    early = PosixTzDateTime(3, 2, 0, -2, 30, 0).to_epoch_secs(2024)

    assert late == _secs(datetime(2024, 3, 11, 2, 0, 0))
    assert early == _secs(datetime(2024, 3, 9, 22, 30, 0))


def test_posix_rules_work_beyond_datetime_range():
    # Second Sunday of March; the stdlib datetime stops at year 9999
    secs = PosixTzDateTime(3, 2, 0, 2, 0, 0).to_epoch_secs(12000)
    assert secs % 86400 == 2 * 3600


@pytest.mark.parametrize(
    "j, year, expected",
    [
        # J excludes Feb 29, so J60 is always Mar 1
        (PosixTzJulianDateTime(60, 0, 0, 0), 2024, datetime(2024, 3, 1, 0, 0, 0)),
        (PosixTzJulianDateTime(60, 0, 0, 0), 2023, datetime(2023, 3, 1, 0, 0, 0)),
        (PosixTzJulianDateTime(365, 23, 59, 59), 2024, datetime(2024, 12, 31, 23, 59, 59)),
        (PosixTzJulianDateTime(365, 0, 0, 0), 2023, datetime(2023, 12, 31, 0, 0, 0)),
    ],
)
def test_posix_julian_datetime(j, year, expected):
    assert j.to_epoch_secs(year) == _secs(expected)


@pytest.mark.parametrize(
    "o, year, expected",
    [
        (PosixTzOrdinalDateTime(59, 0, 0, 0), 2024, datetime(2024, 2, 29, 0, 0, 0)),
        (PosixTzOrdinalDateTime(59, 0, 0, 0), 2023, datetime(2023, 3, 1, 0, 0, 0)),
        (PosixTzOrdinalDateTime(0, 12, 34, 56), 2025, datetime(2025, 1, 1, 12, 34, 56)),
        (PosixTzOrdinalDateTime(365, 0, 0, 0), 2024, datetime(2024, 12, 31, 0, 0, 0)),
    ],
)
def test_posix_ordinal_datetime(o, year, expected):
    assert o.to_epoch_secs(year) == _secs(expected)


@pytest.mark.parametrize(
    "time_str, expected",
    [
        ("2", (2, 0, 0)),
        ("2:30", (2, 30, 0)),
        ("2:30:15", (2, 30, 15)),
        ("167", (167, 0, 0)),
        ("-1:30:15", (-1, -30, -15)),
    ],
)
def test_read_dst_transition_time(time_str, expected):
    assert PosixTzInfo._read_dst_transition_time(time_str) == expected


@pytest.mark.parametrize("bad", ["168", "200:00", "00:60", "00:59:60"])
def test_read_dst_transition_time_invalid(bad):
    with pytest.raises(ValueError):
        PosixTzInfo._read_dst_transition_time(bad)


@pytest.mark.parametrize(
    "offset_str, seconds",
    [
        ("5", -5 * 3600),  # no sign means WEST of UTC
        ("+5", -5 * 3600),
        ("-02:30", 2 * 3600 + 30 * 60),
        ("14", -14 * 3600),
        ("00:45:30", -(45 * 60 + 30)),
    ],
)
def test_read_offset(offset_str, seconds):
    assert PosixTzInfo._read_offset(offset_str) == seconds


@pytest.mark.parametrize("bad", ["25", "99:00", "24:60", "24:00:60", "abc"])
def test_read_offset_invalid(bad):
    with pytest.raises(ValueError):
        PosixTzInfo._read_offset(bad)


@pytest.mark.parametrize(
    "expr, expected",
    [
        ("M3.2.0/2", PosixTzDateTime(3, 2, 0, 2, 0, 0)),
        ("M11.1.0", PosixTzDateTime(11, 1, 0, 2, 0, 0)),
        ("J60/2", PosixTzJulianDateTime(60, 2, 0, 0)),
        ("60/2", PosixTzOrdinalDateTime(60, 2, 0, 0)),
        ("", None),
    ],
)
def test_read_dst_transition_datetime(expr, expected):
    assert PosixTzInfo._read_dst_transition_datetime(expr) == expected


@pytest.mark.parametrize(
    "bad", ["M13.1.0", "M0.1.0", "M5.6.0", "M5.1.7", "J0", "J366", "367", "Q1"]
)
def test_read_dst_transition_datetime_invalid(bad):
    with pytest.raises(ValueError):
        PosixTzInfo._read_dst_transition_datetime(bad)


def test_parse_northern_rules():
    info = PosixTzInfo.parse("EST5EDT,M3.2.0,M11.1.0")

    assert info.standard_abbrev == "EST"
    assert info.utc_offset_secs == -5 * 3600
    assert info.dst_abbrev == "EDT"
    assert info.dst_offset_secs == -4 * 3600
    assert info.dst_difference_secs == 3600
    assert info.dst_start == PosixTzDateTime(3, 2, 0, 2, 0, 0)
    assert info.dst_end == PosixTzDateTime(11, 1, 0, 2, 0, 0)
    assert info.has_dst_rules


def test_parse_standard_only():
    info = PosixTzInfo.parse("<+0330>-3:30")

    assert info.standard_abbrev == "+0330"
    assert info.utc_offset_secs == 3 * 3600 + 30 * 60
    assert info.dst_abbrev is None
    assert info.dst_difference_secs is None
    assert not info.has_dst_rules


def test_read_allows_comma_in_abbreviation():
    info = PosixTzInfo.read(io.BytesIO(b"\n<UTC+05,30>-5:30\n"))

    assert info is not None
    assert info.standard_abbrev == "UTC+05,30"
    assert info.utc_offset_secs == 5 * 3600 + 30 * 60


@pytest.mark.parametrize("footer", [b"", b"\n", b"\n\n"])
def test_read_missing_footer(footer):
    assert PosixTzInfo.read(io.BytesIO(footer)) is None


@pytest.mark.parametrize("bad", ["EST", "5", "EST5EDT,M3.2.0", "EST5EDT,M3.2.0,M11.1.0,X"])
def test_parse_invalid(bad):
    with pytest.raises(ValueError):
        PosixTzInfo.parse(bad)


def test_span_without_dst_covers_all_time():
    span = PosixTzInfo.parse("JST-9").span_at(0)

    assert (span.start, span.end) == (SPAN_MIN, SPAN_MAX)
    assert span.offset == 9 * 3_600_000
    assert span.abbreviation == "JST"
    assert span.is_dst is False


@pytest.mark.parametrize(
    "utc_dt",
    [
        datetime(2050, 1, 15, tzinfo=timezone.utc),
        datetime(2050, 7, 1, tzinfo=timezone.utc),
        datetime(2050, 12, 31, 23, tzinfo=timezone.utc),
        datetime(2399, 11, 5, 6, tzinfo=timezone.utc),
    ],
)
def test_span_matches_zoneinfo_new_york_rules(utc_dt):
    info = PosixTzInfo.parse("EST5EDT,M3.2.0,M11.1.0")
    zone = ZoneInfo("America/New_York")
    span = info.span_at(_secs(utc_dt) * 1000)

    local = utc_dt.astimezone(zone)
    assert span.offset == local.utcoffset().total_seconds() * 1000
    assert span.abbreviation == local.tzname()
    assert span.start <= _secs(utc_dt) * 1000 < span.end

    # the offset changes at both edges of the span
    before = datetime.fromtimestamp(span.start // 1000 - 1, tz=timezone.utc)
    after = datetime.fromtimestamp(span.end // 1000, tz=timezone.utc)
    assert before.astimezone(zone).utcoffset() != local.utcoffset()
    assert after.astimezone(zone).utcoffset() != local.utcoffset()


def test_span_at_boundary_starts_new_span():
    info = PosixTzInfo.parse("EST5EDT,M3.2.0,M11.1.0")
    # 2024-03-10 02:00 EST == 07:00Z
    boundary = _secs(datetime(2024, 3, 10, 7)) * 1000

    assert info.span_at(boundary).start == boundary
    assert info.span_at(boundary).abbreviation == "EDT"
    assert info.span_at(boundary - 1).end == boundary
    assert info.span_at(boundary - 1).abbreviation == "EST"


@pytest.mark.parametrize(
    "utc_dt, offset_hours, is_dst",
    [
        (datetime(2040, 1, 15), 11, True),
        (datetime(2040, 7, 15), 10, False),
        (datetime(2040, 12, 31, 20), 11, True),
    ],
)
def test_span_southern_hemisphere_wraps_year(utc_dt, offset_hours, is_dst):
    info = PosixTzInfo.parse("AEST-10AEDT,M10.1.0,M4.1.0/3")
    span = info.span_at(_secs(utc_dt) * 1000)

    assert span.offset == offset_hours * 3_600_000
    assert span.is_dst is is_dst


def test_span_defaults_dst_offset_to_one_hour():
    info = PosixTzInfo(
        posix_string="STD3DST,M10.1.0/2,M4.1.0/2",
        standard_abbrev="STD",
        utc_offset_secs=-3 * 3600,
        dst_abbrev="DST",
        dst_offset_secs=None,
        dst_start=PosixTzDateTime(10, 1, 0, 2, 0, 0),
        dst_end=PosixTzDateTime(4, 1, 0, 2, 0, 0),
    )
    span = info.span_at(_secs(datetime(2025, 1, 1)) * 1000)

    assert span.offset == -2 * 3_600_000
    assert span.abbreviation == "DST"
