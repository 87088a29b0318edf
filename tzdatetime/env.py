"""
Process-wide timezone state: the location registry and the local location.
"""

import logging
import threading

from .location import UTC, Location

logger = logging.getLogger(__name__)


class LocationDatabase:
    """
    Caches locations by name so every lookup of a zone yields the same object.
    """

    def __init__(self) -> None:
        self._locations: dict[str, Location] = {"UTC": UTC}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        return name in self._locations

    def __len__(self) -> int:
        return len(self._locations)

    @property
    def locations(self) -> dict[str, Location]:
        return dict(self._locations)

    def add(self, location: Location) -> None:
        with self._lock:
            self._locations[location.name] = location

    def get(self, name: str) -> Location:
        location = self._locations.get(name)
        if location is not None:
            return location

        logger.debug("Location %s not cached, reading it", name)
        loaded = Location.read(name)
        with self._lock:
            # another thread may have won the race; keep its object
            return self._locations.setdefault(name, loaded)

    def clear(self) -> None:
        with self._lock:
            self._locations = {"UTC": UTC}


database = LocationDatabase()

_local = UTC
_local_lock = threading.Lock()


def get_location(name: str) -> Location:
    """
    Return the location called ``name``, loading it on first use.

    Raises FileNotFoundError for unknown zones.
    """
    return database.get(name)


def local_location() -> Location:
    """The location used for "local" date-times. Defaults to UTC."""
    return _local


def set_local_location(location: Location) -> None:
    """
    Set the location used for "local" date-times.

    Do this once at start-up, before other threads read it.
    """
    global _local
    with _local_lock:
        _local = location
