"""
Mapping of civil (wall-clock) times onto absolute instants.

A wall-clock reading does not always name exactly one instant. In a gap,
where clocks jump forward, the reading never happens; in a fold, where
clocks fall back, it happens twice. Resolution never fails for either:

* gap: the offset of the span adjacent to the one first probed is used,
  which is the post-gap offset for zones west of UTC;
* fold: the occurrence whose span contains the wall-clock value read as
  UTC wins.

Callers who need the other occurrence of a fold should construct from an
absolute instant instead.
"""

from .location import Location
from .models import Span


def resolve_millis(location: Location, naive: int) -> tuple[int, Span]:
    """
    Resolve ``naive``, civil milliseconds read as if they were UTC, to
    milliseconds since the epoch in ``location``. Returns the instant and
    the span whose offset produced it.
    """
    span = location.lookup(naive)
    if span.offset == 0:
        return naive, span

    candidate = naive - span.offset
    # The shift can carry the candidate over the boundary that chose the
    # offset; one probe of the neighbouring span settles it
    if candidate < span.start:
        span = location.lookup(span.start - 1)
        candidate = naive - span.offset
    elif candidate >= span.end:
        span = location.lookup(span.end)
        candidate = naive - span.offset

    return candidate, span


def resolve(location: Location, naive_micros: int) -> tuple[int, Span]:
    """
    Microsecond form of :func:`resolve_millis`. Offsets are whole
    milliseconds, so the sub-millisecond part passes through untouched.
    """
    naive_millis, sub_millis = divmod(naive_micros, 1000)
    millis, span = resolve_millis(location, naive_millis)
    return millis * 1000 + sub_millis, span
