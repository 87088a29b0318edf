from dataclasses import dataclass

# Valid instants are within 100,000,000 days of the epoch.
MAX_MILLISECONDS_SINCE_EPOCH = 8_640_000_000_000_000
MIN_MILLISECONDS_SINCE_EPOCH = -MAX_MILLISECONDS_SINCE_EPOCH
MAX_MICROSECONDS_SINCE_EPOCH = MAX_MILLISECONDS_SINCE_EPOCH * 1000
MIN_MICROSECONDS_SINCE_EPOCH = -MAX_MICROSECONDS_SINCE_EPOCH

# Span sentinels lie beyond the valid instant range on both sides.
SPAN_MIN = -(2**63)
SPAN_MAX = 2**63


@dataclass(frozen=True)
class Span:
    """
    A contiguous range of instants [start, end), in milliseconds since the
    epoch, during which a location uses one fixed UTC offset.
    """

    start: int
    end: int
    offset: int  # milliseconds east of UTC
    abbreviation: str
    is_dst: bool = False

    def __contains__(self, instant: int) -> bool:
        return self.start <= instant < self.end

    @property
    def offset_secs(self) -> int:
        return self.offset // 1000

    @property
    def offset_hours(self) -> float:
        return self.offset / 3_600_000


UTC_SPAN = Span(SPAN_MIN, SPAN_MAX, 0, "UTC")


@dataclass(frozen=True)
class TimeTypeInfo:
    """
    Represents a ttinfo structure in a TZif file.
    """

    utc_offset_secs: int
    is_dst: bool
    abbrev_index: int
