import sys

from .date_time import TZDateTime
from .env import get_location
from .errors import ParseError, RangeError

USAGE = "usage: python -m tzdatetime [ZONE [DATETIME]]"


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) > 2 or args[:1] in (["-h"], ["--help"]):
        print(USAGE)
        return 0 if args[:1] in (["-h"], ["--help"]) else 2

    zone = args[0] if args else "UTC"
    try:
        location = get_location(zone)
    except (FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if len(args) == 2:
        try:
            value = TZDateTime.parse(location, args[1])
        except (ParseError, RangeError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
    else:
        value = TZDateTime.now(location)

    print(f"{value} {value.time_zone_name} ({location.name})")
    try:
        upcoming = TZDateTime.from_milliseconds_since_epoch(location, value.span.end)
    except RangeError:
        print("next transition: none")
    else:
        print(f"next transition: {upcoming} {upcoming.time_zone_name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
