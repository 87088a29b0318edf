import time
from datetime import datetime, timedelta, timezone
from typing import Any

from . import civil, env
from .errors import RangeError
from .iso8601 import format_iso8601, parse_iso8601
from .location import UTC, Location
from .models import (
    MAX_MICROSECONDS_SINCE_EPOCH,
    MIN_MICROSECONDS_SINCE_EPOCH,
    UTC_SPAN,
    Span,
)
from .resolver import resolve

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MICROSECOND = timedelta(microseconds=1)


def _check_range(micros: int) -> int:
    if not MIN_MICROSECONDS_SINCE_EPOCH <= micros <= MAX_MICROSECONDS_SINCE_EPOCH:
        raise RangeError(
            f"Instant {micros}us is outside the supported range of "
            f"+/-{MAX_MICROSECONDS_SINCE_EPOCH}us from the epoch"
        )
    return micros


def _span_for(location: Location, micros: int) -> Span:
    if location is UTC:
        return UTC_SPAN
    return location.lookup(micros // 1000)


class TZDateTime:
    """
    A point in time bound to a :class:`Location`.

    The value stores the absolute instant and the span of ``location`` that
    contains it. Calendar fields are the wall-clock reading in ``location``.

    >>> d_day = TZDateTime.utc(1944, 6, 6)
    >>> str(d_day)
    '1944-06-06 00:00:00.000Z'
    """

    __slots__ = ("_micros", "_location", "_span")

    _micros: int
    _location: Location
    _span: Span

    def __init__(
        self,
        location: Location,
        year: int,
        month: int = 1,
        day: int = 1,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        millisecond: int = 0,
        microsecond: int = 0,
    ) -> None:
        naive = _check_range(
            civil.micros_from_fields(
                year, month, day, hour, minute, second, millisecond, microsecond
            )
        )
        micros = naive if location is UTC else resolve(location, naive)[0]
        self._init(_check_range(micros), location)

    def _init(self, micros: int, location: Location) -> None:
        # The stored span is the one containing the instant, so for a wall
        # time in a gap it may differ from the span whose offset was applied
        object.__setattr__(self, "_micros", micros)
        object.__setattr__(self, "_location", location)
        object.__setattr__(self, "_span", _span_for(location, micros))

    @classmethod
    def _from_micros(cls, location: Location, micros: int) -> "TZDateTime":
        value = cls.__new__(cls)
        value._init(_check_range(micros), location)
        return value

    @classmethod
    def utc(cls, year: int, *args: int, **kwargs: int) -> "TZDateTime":
        """Construct from civil fields in UTC."""
        return cls(UTC, year, *args, **kwargs)

    @classmethod
    def local(cls, year: int, *args: int, **kwargs: int) -> "TZDateTime":
        """Construct from civil fields in the current local location."""
        return cls(env.local_location(), year, *args, **kwargs)

    @classmethod
    def now(cls, location: Location) -> "TZDateTime":
        return cls._from_micros(location, time.time_ns() // 1000)

    @classmethod
    def from_milliseconds_since_epoch(
        cls, location: Location, milliseconds_since_epoch: int
    ) -> "TZDateTime":
        return cls._from_micros(location, milliseconds_since_epoch * 1000)

    @classmethod
    def from_microseconds_since_epoch(
        cls, location: Location, microseconds_since_epoch: int
    ) -> "TZDateTime":
        return cls._from_micros(location, microseconds_since_epoch)

    @classmethod
    def from_datetime(
        cls, other: "TZDateTime | datetime", location: Location
    ) -> "TZDateTime":
        """
        Convert ``other`` to ``location``.

        A ``TZDateTime`` or an aware ``datetime`` keeps its instant. A naive
        ``datetime`` is taken as a wall-clock time in ``location``.
        """
        if isinstance(other, TZDateTime):
            return cls._from_micros(location, other._micros)
        if other.tzinfo is None or other.utcoffset() is None:
            return cls(
                location,
                other.year,
                other.month,
                other.day,
                other.hour,
                other.minute,
                other.second,
                0,
                other.microsecond,
            )
        return cls._from_micros(location, (other - _EPOCH) // _ONE_MICROSECOND)

    @classmethod
    def parse(cls, location: Location, formatted_string: str) -> "TZDateTime":
        """
        Parse ISO 8601 text into a value in ``location``.

        Text with ``Z`` or a numeric offset names an instant, which is then
        shown in ``location``; text without one is a wall-clock time in
        ``location``. Raises ParseError on malformed text.

        >>> TZDateTime.parse(UTC, "2002-02-27T14:00:00-0500")
        TZDateTime(Location('UTC'), '2002-02-27 19:00:00.000Z')
        """
        parsed = parse_iso8601(formatted_string)
        micros = _check_range(parsed.micros)
        if parsed.is_absolute or location is UTC:
            return cls._from_micros(location, micros)
        return cls._from_micros(location, resolve(location, micros)[0])

    # -- identity -----------------------------------------------------------

    @property
    def location(self) -> Location:
        return self._location

    @property
    def span(self) -> Span:
        return self._span

    @property
    def is_utc(self) -> bool:
        return self._location is UTC

    @property
    def is_local(self) -> bool:
        return self._location is env.local_location()

    @property
    def milliseconds_since_epoch(self) -> int:
        return self._micros // 1000

    @property
    def microseconds_since_epoch(self) -> int:
        return self._micros

    @property
    def time_zone_name(self) -> str:
        """The zone abbreviation in effect, e.g. ``"CET"`` or ``"CEST"``."""
        return self._span.abbreviation

    @property
    def time_zone_offset(self) -> timedelta:
        """Local time minus UTC; positive east of Greenwich."""
        return timedelta(milliseconds=self._span.offset)

    @property
    def is_dst(self) -> bool:
        return self._span.is_dst

    # -- calendar fields ----------------------------------------------------

    def _fields(self) -> tuple[int, int, int, int, int, int, int, int]:
        return civil.fields_from_micros(self._micros + self._span.offset * 1000)

    @property
    def year(self) -> int:
        return self._fields()[0]

    @property
    def month(self) -> int:
        return self._fields()[1]

    @property
    def day(self) -> int:
        return self._fields()[2]

    @property
    def hour(self) -> int:
        return self._fields()[3]

    @property
    def minute(self) -> int:
        return self._fields()[4]

    @property
    def second(self) -> int:
        return self._fields()[5]

    @property
    def millisecond(self) -> int:
        return self._fields()[6]

    @property
    def microsecond(self) -> int:
        return self._fields()[7]

    @property
    def weekday(self) -> int:
        """ISO 8601 day of the week, Monday=1 .. Sunday=7."""
        local_micros = self._micros + self._span.offset * 1000
        return civil.iso_weekday(local_micros // civil.MICROS_PER_DAY)

    # -- conversion ---------------------------------------------------------

    def to_location(self, location: Location) -> "TZDateTime":
        if location is self._location:
            return self
        return TZDateTime._from_micros(location, self._micros)

    def to_utc(self) -> "TZDateTime":
        return self.to_location(UTC)

    def to_local(self) -> "TZDateTime":
        return self.to_location(env.local_location())

    def to_datetime(self) -> datetime:
        """
        Return an aware ``datetime`` with this value's fixed offset and
        abbreviation. Raises RangeError outside the years 1..9999.
        """
        tz = (
            timezone.utc
            if self.is_utc
            else timezone(self.time_zone_offset, self.time_zone_name)
        )
        try:
            return (_EPOCH + timedelta(microseconds=self._micros)).astimezone(tz)
        except OverflowError as exc:
            raise RangeError(f"{self} is outside the range of datetime") from exc

    def to_iso8601_string(self) -> str:
        return format_iso8601(self._micros, self._span.offset)

    def __str__(self) -> str:
        return self.to_iso8601_string()

    def __repr__(self) -> str:
        return f"TZDateTime({self._location!r}, {self.to_iso8601_string()!r})"

    # -- arithmetic ---------------------------------------------------------

    def add(self, duration: timedelta) -> "TZDateTime":
        return TZDateTime._from_micros(
            self._location, self._micros + duration // _ONE_MICROSECOND
        )

    def subtract(self, duration: timedelta) -> "TZDateTime":
        return TZDateTime._from_micros(
            self._location, self._micros - duration // _ONE_MICROSECOND
        )

    def difference(self, other: "TZDateTime | datetime") -> timedelta:
        return timedelta(microseconds=self._micros - _instant_of(other))

    def __add__(self, other: Any) -> "TZDateTime":
        if isinstance(other, timedelta):
            return self.add(other)
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other: Any) -> Any:
        if isinstance(other, timedelta):
            return self.subtract(other)
        if isinstance(other, (TZDateTime, datetime)):
            return self.difference(other)
        return NotImplemented

    # -- comparison ---------------------------------------------------------

    def is_before(self, other: "TZDateTime | datetime") -> bool:
        return self._micros < _instant_of(other)

    def is_after(self, other: "TZDateTime | datetime") -> bool:
        return self._micros > _instant_of(other)

    def is_at_same_moment_as(self, other: "TZDateTime | datetime") -> bool:
        return self._micros == _instant_of(other)

    def compare_to(self, other: "TZDateTime | datetime") -> int:
        instant = _instant_of(other)
        return (self._micros > instant) - (self._micros < instant)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TZDateTime):
            return NotImplemented
        return self._micros == other._micros and self._location is other._location

    def __hash__(self) -> int:
        return hash(self._micros)

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, (TZDateTime, datetime)):
            return NotImplemented
        return self.is_before(other)

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, (TZDateTime, datetime)):
            return NotImplemented
        return not self.is_after(other)

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, (TZDateTime, datetime)):
            return NotImplemented
        return self.is_after(other)

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, (TZDateTime, datetime)):
            return NotImplemented
        return not self.is_before(other)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __copy__(self) -> "TZDateTime":
        return self

    def __deepcopy__(self, memo: dict) -> "TZDateTime":
        return self


def _instant_of(other: "TZDateTime | datetime") -> int:
    if isinstance(other, TZDateTime):
        return other._micros
    if other.tzinfo is None or other.utcoffset() is None:
        raise TypeError("Cannot compare a TZDateTime with a naive datetime")
    return (other - _EPOCH) // _ONE_MICROSECOND
