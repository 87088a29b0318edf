import struct

import pytest

from tzdatetime import civil
from tzdatetime.location import Location
from tzdatetime.models import SPAN_MAX, SPAN_MIN, Span


def utc_ms(*fields: int) -> int:
    """Milliseconds since the epoch of civil fields read as UTC."""
    return civil.micros_from_fields(*fields) // 1000


def _tzif_header(version: int, timecnt: int, typecnt: int, charcnt: int) -> bytes:
    version_byte = b"\x00" if version == 1 else str(version).encode("ascii")
    return struct.pack(
        ">4sc15x6I", b"TZif", version_byte, 0, 0, 0, timecnt, typecnt, charcnt
    )


def _tzif_block(time_format, transitions, indices, ttinfos, abbrevs) -> bytes:
    return (
        struct.pack(f">{len(transitions)}{time_format}", *transitions)
        + bytes(indices)
        + b"".join(struct.pack(">i?B", *tt) for tt in ttinfos)
        + abbrevs.encode("ascii")
    )


def make_tzif(
    transitions: list[int],
    indices: list[int],
    ttinfos: list[tuple[int, bool, int]],
    abbrevs: str,
    footer: str | None = None,
    version: int = 2,
) -> bytes:
    """
    Build TZif bytes. ``ttinfos`` are (utc offset secs, is_dst, abbrev index).
    For v2+ the v1 block carries no transitions.
    """
    if version == 1:
        return _tzif_header(1, len(transitions), len(ttinfos), len(abbrevs)) + _tzif_block(
            "i", transitions, indices, ttinfos, abbrevs
        )
    return (
        _tzif_header(version, 0, len(ttinfos), len(abbrevs))
        + _tzif_block("i", [], [], ttinfos, abbrevs)
        + _tzif_header(version, len(transitions), len(ttinfos), len(abbrevs))
        + _tzif_block("q", transitions, indices, ttinfos, abbrevs)
        + b"\n"
        + (footer or "").encode("ascii")
        + b"\n"
    )


@pytest.fixture
def build_tzif():
    return make_tzif


@pytest.fixture
def west_location() -> Location:
    """UTC-5 standard / UTC-4 daylight, switching on the 2024 US dates."""
    spring = utc_ms(2024, 3, 10, 7)
    autumn = utc_ms(2024, 11, 3, 6)
    return Location(
        "Test/West",
        [
            Span(SPAN_MIN, spring, -5 * 3_600_000, "WST"),
            Span(spring, autumn, -4 * 3_600_000, "WDT", True),
            Span(autumn, SPAN_MAX, -5 * 3_600_000, "WST"),
        ],
    )


@pytest.fixture
def east_location() -> Location:
    """UTC+1 standard / UTC+2 daylight, switching on the 2024 EU dates."""
    spring = utc_ms(2024, 3, 31, 1)
    autumn = utc_ms(2024, 10, 27, 1)
    return Location(
        "Test/East",
        [
            Span(SPAN_MIN, spring, 3_600_000, "EST"),
            Span(spring, autumn, 2 * 3_600_000, "EDT", True),
            Span(autumn, SPAN_MAX, 3_600_000, "EST"),
        ],
    )
