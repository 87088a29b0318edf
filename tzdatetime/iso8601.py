import re
from dataclasses import dataclass

from . import civil
from .errors import ParseError

_PARSE_FORMAT = re.compile(
    r"""
    (?P<year>[+-]?\d{4,6})-?(?P<month>\d\d)-?(?P<day>\d\d)
    (?:
        [ T](?P<hour>\d\d)
        (?::?(?P<minute>\d\d)(?::?(?P<second>\d\d)(?:[.,](?P<fraction>\d+))?)?)?
        (?P<tz>\ ?[zZ]|\ ?(?P<sign>[-+])(?P<tz_hour>\d\d)(?::?(?P<tz_minute>\d\d))?)?
    )?
    """,
    re.ASCII | re.VERBOSE,
)


@dataclass(frozen=True)
class ParsedDateTime:
    """
    Result of parsing date-time text.

    When the text carried ``Z`` or a numeric offset, ``micros`` is an absolute
    instant; otherwise it holds civil fields read as UTC and still needs
    resolving in a location.
    """

    micros: int
    is_absolute: bool


def parse_iso8601(text: str) -> ParsedDateTime:
    """
    Parse the ISO 8601 / RFC 3339 subset accepted by ``TZDateTime.parse``.

    Accepted examples::

        2012-02-27 13:27:00
        2012-02-27 13:27:00.123456z
        20120227 13:27:00
        20120227T132700
        20120227
        +20120227
        2012-02-27T14Z
        2012-02-27T14+00:00
        -123450101 00:00:00 Z
        2002-02-27T14:00:00-0500
    """
    match = _PARSE_FORMAT.fullmatch(text)
    if match is None:
        raise ParseError(f"Invalid date format: {text!r}")

    def field(name: str) -> int:
        value = match.group(name)
        return int(value) if value is not None else 0

    # Fractions keep microsecond precision; further digits are dropped
    fraction = (match.group("fraction") or "")[:6].ljust(6, "0")

    micros = civil.micros_from_fields(
        int(match.group("year")),
        field("month"),
        field("day"),
        field("hour"),
        field("minute"),
        field("second"),
        microsecond=int(fraction),
    )

    if match.group("tz") is None:
        return ParsedDateTime(micros, is_absolute=False)

    offset_minutes = field("tz_hour") * 60 + field("tz_minute")
    if match.group("sign") == "-":
        offset_minutes = -offset_minutes
    return ParsedDateTime(
        micros - offset_minutes * civil.MICROS_PER_MINUTE, is_absolute=True
    )


def _four_digits(n: int) -> str:
    sign = "-" if n < 0 else ""
    return f"{sign}{abs(n):04d}"


def format_iso8601(micros: int, offset: int) -> str:
    """
    Format the wall-clock reading of ``micros`` at ``offset`` milliseconds
    east of UTC as ``YYYY-MM-DD HH:mm:ss.mmm[uuu]{Z|+HHMM}``.
    """
    (
        year,
        month,
        day,
        hour,
        minute,
        second,
        millisecond,
        microsecond,
    ) = civil.fields_from_micros(micros + offset * 1000)

    text = (
        f"{_four_digits(year)}-{month:02d}-{day:02d} "
        f"{hour:02d}:{minute:02d}:{second:02d}.{millisecond:03d}"
    )
    if microsecond:
        text += f"{microsecond:03d}"

    if offset == 0:
        return text + "Z"

    sign = "+" if offset > 0 else "-"
    offset_secs = abs(offset) // 1000  # seconds are truncated
    return text + f"{sign}{offset_secs // 3600:02d}{offset_secs % 3600 // 60:02d}"
