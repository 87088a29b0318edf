import bisect
import logging
import os
import sysconfig
from dataclasses import replace
from importlib import resources
from typing import IO

from .models import SPAN_MAX, SPAN_MIN, UTC_SPAN, Span, TimeTypeInfo
from .posix import PosixTzInfo
from .tzif import TZifData

logger = logging.getLogger(__name__)


class Location:
    """
    A named timezone and its transition index.

    ``spans`` must be contiguous, start at ``SPAN_MIN`` and end at ``SPAN_MAX``.
    When a POSIX ``footer`` is given, instants within the last span are
    answered by the footer rules instead, so recurring DST continues past
    the last explicit transition.
    """

    def __init__(
        self,
        name: str,
        spans: list[Span],
        footer: PosixTzInfo | None = None,
        filepath: str | None = None,
    ) -> None:
        if not spans:
            raise ValueError("A location needs at least one span")
        if spans[0].start != SPAN_MIN or spans[-1].end != SPAN_MAX:
            raise ValueError("Spans must cover all instants")
        for before, after in zip(spans, spans[1:]):
            if before.end != after.start:
                raise ValueError("Spans must be contiguous")
        if any(span.start >= span.end for span in spans):
            raise ValueError("Spans must not be empty")

        self.name = name
        self.filepath = filepath
        self._spans = spans
        self._starts = [span.start for span in spans]
        self._footer = footer
        self._last_span: Span | None = None

    @property
    def footer(self) -> PosixTzInfo | None:
        return self._footer

    @property
    def spans(self) -> list[Span]:
        """The explicit spans, not counting those generated from the footer."""
        return list(self._spans)

    @property
    def transition_times(self) -> list[int]:
        return self._starts[1:]

    def lookup(self, instant: int) -> Span:
        """
        Return the span containing ``instant`` (milliseconds since the epoch).
        """
        last = self._last_span
        if last is not None and last.start <= instant < last.end:
            return last

        index = max(bisect.bisect_right(self._starts, instant) - 1, 0)
        span = self._spans[index]
        if self._footer is not None and index == len(self._spans) - 1:
            rule_span = self._footer.span_at(instant)
            span = replace(rule_span, start=max(rule_span.start, span.start))

        self._last_span = span
        return span

    @classmethod
    def from_tzif(
        cls, name: str, data: TZifData, filepath: str | None = None
    ) -> "Location":
        infos = data.time_type_infos
        # Before the first transition, prefer the first standard-time ttinfo
        initial = next((tt for tt in infos if not tt.is_dst), infos[0])

        spans: list[Span] = []
        start, current = SPAN_MIN, initial
        for transition_time, index in zip(data.transition_times, data.time_type_indices):
            instant = transition_time * 1000
            if instant >= SPAN_MAX:
                break
            if instant > start:
                spans.append(cls._span(data, start, instant, current))
                start = instant
            current = infos[index]
        spans.append(cls._span(data, start, SPAN_MAX, current))

        if data.footer is None:
            spans = cls._merge(spans)
        elif len(spans) > 1:
            # the footer takes over at the last transition, so that span stays put
            spans = cls._merge(spans[:-1]) + spans[-1:]
        return cls(name, spans, data.footer, filepath)

    @staticmethod
    def _span(data: TZifData, start: int, end: int, tt: TimeTypeInfo) -> Span:
        return Span(
            start,
            end,
            tt.utc_offset_secs * 1000,
            data.abbrev_at(tt.abbrev_index),
            tt.is_dst,
        )

    @staticmethod
    def _merge(spans: list[Span]) -> list[Span]:
        # Some TZif files repeat a ttinfo across transitions; such runs are one span
        merged = [spans[0]]
        for span in spans[1:]:
            prev = merged[-1]
            if (span.offset, span.abbreviation, span.is_dst) == (
                prev.offset,
                prev.abbreviation,
                prev.is_dst,
            ):
                merged[-1] = replace(prev, end=span.end)
            else:
                merged.append(span)
        return merged

    @classmethod
    def from_fileobj(cls, file: IO[bytes], name: str, filepath: str | None = None) -> "Location":
        return cls.from_tzif(name, TZifData.read(file), filepath)

    @classmethod
    def from_path(cls, path: str, name: str | None = None) -> "Location":
        """Read a TZif file directly from a filesystem path."""
        real = os.path.realpath(path)
        with open(real, "rb") as file:
            return cls.from_fileobj(file, name or real, real)

    @classmethod
    def read(cls, name: str) -> "Location":
        if os.path.isabs(name):
            raise ValueError(
                "Absolute paths are not allowed in Location.read(); use from_path() instead."
            )

        normalized_name = cls._validate_timezone_key(name)

        search_paths: list[str] = []
        tzdir_override = os.environ.get("TZDIR")
        if tzdir_override:
            search_paths.append(os.path.realpath(tzdir_override))
        search_paths.extend(cls._compute_default_tzpath())

        for tz_root in search_paths:
            candidate = os.path.join(tz_root, normalized_name)
            logger.debug("Looking for %s in %s", name, tz_root)
            if os.path.isfile(candidate):
                real = os.path.realpath(candidate)
                logger.debug("Loading %s from %s", name, real)
                with open(real, "rb") as file:
                    return cls.from_fileobj(file, name, real)

        logger.debug("Falling back to the tzdata package for %s", name)
        with cls._load_tzdata_from_package(normalized_name) as file:
            return cls.from_fileobj(file, name, f"tzdata:{normalized_name}")

    @staticmethod
    def _compute_default_tzpath() -> tuple[str, ...]:
        env_var = os.environ.get("PYTHONTZPATH") or sysconfig.get_config_var("TZPATH")
        if env_var:
            return tuple(path for path in env_var.split(os.pathsep) if path)

        # Fallback paths align with CPython's defaults
        return (
            "/usr/share/zoneinfo",
            "/usr/share/lib/zoneinfo",
            "/etc/zoneinfo",
        )

    @staticmethod
    def _validate_timezone_key(key: str) -> str:
        if os.path.isabs(key):
            raise ValueError("Absolute paths are not allowed as timezone keys")

        # The normalized form must not change length (rejects ../ and trailing ..)
        normalized = os.path.normpath(key)
        if len(normalized) != len(key) or normalized in (os.curdir, os.pardir, ""):
            raise ValueError(f"Invalid timezone name: {key!r}")

        _base = os.path.normpath(os.path.join("_", "_"))[:-1]
        resolved = os.path.normpath(os.path.join(_base, normalized))
        if not resolved.startswith(_base):
            raise ValueError(f"Invalid timezone name: {key!r}")

        return normalized

    @staticmethod
    def _load_tzdata_from_package(key: str) -> IO[bytes]:
        components = key.split("/")
        package_name = ".".join(["tzdata.zoneinfo"] + components[:-1])
        resource_name = components[-1]
        try:
            return resources.files(package_name).joinpath(resource_name).open("rb")
        except (
            ImportError,
            FileNotFoundError,
            IsADirectoryError,
            UnicodeEncodeError,
        ) as exc:
            raise FileNotFoundError(f"No time zone found with key {key!r}") from exc

    def __repr__(self) -> str:
        return f"Location({self.name!r})"

    def __str__(self) -> str:
        return self.name


UTC = Location("UTC", [UTC_SPAN])
