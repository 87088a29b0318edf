import re
from dataclasses import dataclass
from typing import IO

from . import civil
from .models import SPAN_MAX, SPAN_MIN, Span

_SECS_PER_DAY = 86400

_LOCAL_TZ_PARSER = re.compile(
    r"""
    (?P<std>[^<0-9:.+-]+|<[^>]+>)
    (?:
        (?P<stdoff>[+-]?\d{1,3}(?::\d{2}(?::\d{2})?)?)
        (?:
            (?P<dst>[^<0-9:.+-]+|<[^>]+>)
            (?P<dstoff>[+-]?\d{1,3}(?::\d{2}(?::\d{2})?)?)?
        )? # dst
    )? # stdoff
    """,
    re.ASCII | re.VERBOSE,
)

_HMS_PARSER = re.compile(
    r"(?P<sign>[+-])?(?P<h>\d{1,3})(:(?P<m>\d{2})(:(?P<s>\d{2}))?)?",
    re.ASCII,
)


def _day_seconds(hour: int, minute: int, second: int) -> int:
    return hour * 3600 + minute * 60 + second


@dataclass
class PosixTzJulianDateTime:
    day_of_year: int  # 1..365, Feb 29 never counted
    hour: int
    minute: int
    second: int

    def to_epoch_secs(self, year: int) -> int:
        """Local wall time of this rule in ``year``, as seconds read as UTC."""
        day_index = self.day_of_year - 1
        if civil.is_leap_year(year) and self.day_of_year >= 60:
            day_index += 1
        days = civil.days_from_civil(year, 1, 1) + day_index
        return days * _SECS_PER_DAY + _day_seconds(self.hour, self.minute, self.second)


@dataclass
class PosixTzOrdinalDateTime:
    day_index: int  # 0..365 (includes Feb 29)
    hour: int
    minute: int
    second: int

    def to_epoch_secs(self, year: int) -> int:
        days = civil.days_from_civil(year, 1, 1) + self.day_index
        return days * _SECS_PER_DAY + _day_seconds(self.hour, self.minute, self.second)


@dataclass
class PosixTzDateTime:
    month: int
    week: int  # 1..5 (5 = last)
    weekday: int  # POSIX: Sunday=0 ... Saturday=6
    hour: int
    minute: int
    second: int

    def to_epoch_secs(self, year: int) -> int:
        # POSIX Sunday=0 maps onto ISO Sunday=7
        iso_weekday = self.weekday or 7

        first_of_month = civil.days_from_civil(year, self.month, 1)
        delta = (iso_weekday - civil.iso_weekday(first_of_month)) % 7
        days = first_of_month + delta + 7 * (self.week - 1)

        if self.week == 5:
            # "last" occurrence: back up a week if we overshot the month
            if days - first_of_month >= civil.days_in_month(year, self.month):
                days -= 7

        return days * _SECS_PER_DAY + _day_seconds(self.hour, self.minute, self.second)


PosixTzRuleDate = PosixTzDateTime | PosixTzJulianDateTime | PosixTzOrdinalDateTime


@dataclass
class PosixTzInfo:
    posix_string: str
    standard_abbrev: str
    utc_offset_secs: int
    dst_abbrev: str | None
    dst_offset_secs: int | None
    dst_start: PosixTzRuleDate | None
    dst_end: PosixTzRuleDate | None

    @property
    def has_dst_rules(self) -> bool:
        return (
            self.dst_abbrev is not None
            and self.dst_start is not None
            and self.dst_end is not None
        )

    @property
    def effective_dst_offset_secs(self) -> int:
        # DST defaults to one hour ahead of standard time
        if self.dst_offset_secs is not None:
            return self.dst_offset_secs
        return self.utc_offset_secs + 3600

    @property
    def dst_difference_secs(self) -> int | None:
        if self.dst_abbrev is None:
            return None
        return self.effective_dst_offset_secs - self.utc_offset_secs

    def transitions_in_year(self, year: int) -> list[tuple[int, bool]]:
        """
        DST boundaries for ``year`` as (UTC milliseconds, is_dst afterwards).
        Start rules are written in local standard time and end rules in local
        daylight time.
        """
        if not self.has_dst_rules:
            return []
        assert self.dst_start is not None and self.dst_end is not None
        start = self.dst_start.to_epoch_secs(year) - self.utc_offset_secs
        end = self.dst_end.to_epoch_secs(year) - self.effective_dst_offset_secs
        return [(start * 1000, True), (end * 1000, False)]

    def span_at(self, instant: int) -> Span:
        """
        Span the footer rules give for ``instant`` (milliseconds since the epoch).
        """
        std_ms = self.utc_offset_secs * 1000
        if not self.has_dst_rules:
            return Span(SPAN_MIN, SPAN_MAX, std_ms, self.standard_abbrev, False)

        # POSIX rules are anchored to the year in local standard time
        local_days = (instant + std_ms) // (_SECS_PER_DAY * 1000)
        year = civil.civil_from_days(local_days)[0]

        boundaries = sorted(
            boundary
            for y in (year - 1, year, year + 1)
            for boundary in self.transitions_in_year(y)
        )
        previous = [b for b in boundaries if b[0] <= instant]
        upcoming = [b for b in boundaries if b[0] > instant]

        start = previous[-1][0] if previous else SPAN_MIN
        end = upcoming[0][0] if upcoming else SPAN_MAX
        if previous:
            in_dst = previous[-1][1]
        else:
            in_dst = not upcoming[0][1]

        if in_dst:
            return Span(
                start,
                end,
                self.effective_dst_offset_secs * 1000,
                self.dst_abbrev or self.standard_abbrev,
                True,
            )
        return Span(start, end, std_ms, self.standard_abbrev, False)

    @classmethod
    def read(cls, file: IO[bytes]) -> "PosixTzInfo | None":
        # The footer is "\n<TZ string>\n" after the v2+ data block
        _ = file.readline()
        posix_line = file.readline()
        if posix_line == b"":
            return None

        posix_string = posix_line.rstrip(b"\n\x00")
        if not posix_string:
            return None
        return cls.parse(posix_string.decode("utf-8"))

    @classmethod
    def parse(cls, posix_string: str) -> "PosixTzInfo":
        # Adapted from zoneinfo._zoneinfo._parse_tz_str; abbreviations in
        # angle brackets may themselves contain commas
        rules_match = re.fullmatch(
            r"(?P<local>(?:<[^>]*>|[^,<])+)(?:,(?P<start>[^,]*),(?P<end>[^,]*))?",
            posix_string,
        )
        if rules_match is None:
            raise ValueError(f"{posix_string!r} is not a valid TZ string")
        local_tz = rules_match.group("local")
        dst_start_str = rules_match.group("start") or ""
        dst_end_str = rules_match.group("end") or ""

        local_tz_match = _LOCAL_TZ_PARSER.fullmatch(local_tz)
        if local_tz_match is None:
            raise ValueError(f"{local_tz!r} is not a valid TZ string")

        standard_abbrev = local_tz_match.group("std").strip("<>")
        utc_offset = local_tz_match.group("stdoff")
        if utc_offset is None:
            raise ValueError(f"{local_tz!r} is missing required standard offset")
        utc_offset_secs = cls._read_offset(utc_offset)

        dst_abbrev = local_tz_match.group("dst")
        if dst_abbrev:
            dst_abbrev = dst_abbrev.strip("<>")
        dst_offset = local_tz_match.group("dstoff")
        if dst_offset:
            dst_offset_secs = cls._read_offset(dst_offset)
        elif dst_abbrev:
            dst_offset_secs = utc_offset_secs + 3600
        else:
            dst_offset_secs = None

        return cls(
            posix_string,
            standard_abbrev,
            utc_offset_secs,
            dst_abbrev or None,
            dst_offset_secs,
            cls._read_dst_transition_datetime(dst_start_str),
            cls._read_dst_transition_datetime(dst_end_str),
        )

    @classmethod
    def _read_offset(cls, posix_offset: str) -> int:
        offset_match = _HMS_PARSER.fullmatch(posix_offset)
        if offset_match is None:
            raise ValueError(f"{posix_offset} is not a valid offset")

        h, m, s = (int(v or 0) for v in offset_match.group("h", "m", "s"))

        if h > 24:
            raise ValueError(f"Offset hours must be in [0, 24]: {posix_offset}")
        if not (0 <= m < 60 and 0 <= s < 60):
            raise ValueError(
                f"Offset minutes/seconds must be in [0, 59]: {posix_offset}"
            )
        if h == 24 and (m != 0 or s != 0):
            raise ValueError(f"24-hour offsets must be 24:00[:00]: {posix_offset}")

        total = h * 3600 + m * 60 + s
        # POSIX sign convention: positive means WEST of UTC
        if offset_match.group("sign") != "-":
            total = -total

        return total

    @classmethod
    def _read_dst_transition_datetime(cls, posix_datetime: str) -> PosixTzRuleDate | None:
        date, *time = posix_datetime.split("/", 1)
        t = time[0] if time else None
        trans_time = cls._read_dst_transition_time(t) if t else (2, 0, 0)

        if not date:
            return None

        if date.startswith("M"):
            m = re.fullmatch(r"M(\d{1,2})\.(\d)\.(\d)", date)
            if m is None:
                raise ValueError(f"Invalid dst start/end date: {posix_datetime}")
            month, week, weekday = (int(x) for x in m.groups())
            if not (1 <= month <= 12 and 1 <= week <= 5 and 0 <= weekday <= 6):
                raise ValueError(f"Invalid M<m>.<w>.<d>: {posix_datetime}")
            return PosixTzDateTime(month, week, weekday, *trans_time)

        if date.startswith("J"):
            if not date[1:].isdigit():
                raise ValueError(f"Invalid J<n>: {posix_datetime}")
            n = int(date[1:])
            if not (1 <= n <= 365):
                raise ValueError(f"J<n> must be 1..365: {posix_datetime}")
            return PosixTzJulianDateTime(n, *trans_time)

        if date.isdigit():
            n = int(date)
            if not (0 <= n <= 365):
                raise ValueError(f"<n> must be 0..365: {posix_datetime}")
            return PosixTzOrdinalDateTime(n, *trans_time)

        raise ValueError(f"Invalid dst start/end date: {posix_datetime}")

    @classmethod
    def _read_dst_transition_time(cls, time_str: str) -> tuple[int, int, int]:
        match = _HMS_PARSER.fullmatch(time_str)
        if match is None:
            raise ValueError(f"Invalid time: {time_str}")

        h, m, s = (int(v or 0) for v in match.group("h", "m", "s"))

        # hours may run past a day, up to a week
        if h > 167:
            raise ValueError(f"Hour must be in [0, 167]: {time_str}")
        if not (0 <= m < 60 and 0 <= s < 60):
            raise ValueError(f"Minutes/seconds must be in [0, 59]: {time_str}")

        if match.group("sign") == "-":
            h, m, s = -h, -m, -s

        return h, m, s
