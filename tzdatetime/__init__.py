from .date_time import TZDateTime
from .env import get_location, local_location, set_local_location
from .errors import ParseError, RangeError
from .location import UTC, Location
from .models import Span

__all__ = [
    "TZDateTime",
    "Location",
    "Span",
    "UTC",
    "get_location",
    "local_location",
    "set_local_location",
    "ParseError",
    "RangeError",
]
