"""
Proleptic Gregorian calendar arithmetic on plain integers.

The stdlib ``datetime`` type stops at year 9999, while valid instants reach
roughly 275,000 years either side of the epoch, so day numbers are converted
here directly. Day 0 is 1970-01-01.
"""

MICROS_PER_MILLISECOND = 1000
MICROS_PER_SECOND = 1_000_000
MICROS_PER_MINUTE = 60 * MICROS_PER_SECOND
MICROS_PER_HOUR = 60 * MICROS_PER_MINUTE
MICROS_PER_DAY = 24 * MICROS_PER_HOUR

_DAYS_PER_ERA = 146097


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    if month == 2:
        return 29 if is_leap_year(year) else 28
    return 30 if month in (4, 6, 9, 11) else 31


def days_from_civil(year: int, month: int, day: int) -> int:
    """
    Day number of year-month-day relative to 1970-01-01.

    ``month`` must be 1..12; ``day`` may fall outside the month and simply
    counts on from the first.
    """
    y = year - 1 if month <= 2 else year
    era = y // 400
    yoe = y - era * 400
    mp = (month + 9) % 12  # March == 0
    doy = (153 * mp + 2) // 5
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy
    return era * _DAYS_PER_ERA + doe - 719468 + (day - 1)


def civil_from_days(days: int) -> tuple[int, int, int]:
    z = days + 719468
    era = z // _DAYS_PER_ERA
    doe = z - era * _DAYS_PER_ERA
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    year = yoe + era * 400 + (1 if month <= 2 else 0)
    return year, month, day


def iso_weekday(days: int) -> int:
    """ISO weekday (Monday=1 .. Sunday=7) of a day number."""
    # 1970-01-01 was a Thursday
    return (days + 3) % 7 + 1


def micros_from_fields(
    year: int,
    month: int = 1,
    day: int = 1,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    millisecond: int = 0,
    microsecond: int = 0,
) -> int:
    """
    Microseconds since the epoch for civil fields read as UTC.

    Fields outside their usual range carry over, so month 13 is January of
    the following year and hour 24 is midnight of the following day.
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    days = days_from_civil(year, month, day)
    return (
        days * MICROS_PER_DAY
        + hour * MICROS_PER_HOUR
        + minute * MICROS_PER_MINUTE
        + second * MICROS_PER_SECOND
        + millisecond * MICROS_PER_MILLISECOND
        + microsecond
    )


def fields_from_micros(micros: int) -> tuple[int, int, int, int, int, int, int, int]:
    """
    Split microseconds since the epoch into
    (year, month, day, hour, minute, second, millisecond, microsecond).
    """
    days, rem = divmod(micros, MICROS_PER_DAY)
    year, month, day = civil_from_days(days)
    hour, rem = divmod(rem, MICROS_PER_HOUR)
    minute, rem = divmod(rem, MICROS_PER_MINUTE)
    second, rem = divmod(rem, MICROS_PER_SECOND)
    millisecond, microsecond = divmod(rem, MICROS_PER_MILLISECOND)
    return year, month, day, hour, minute, second, millisecond, microsecond
