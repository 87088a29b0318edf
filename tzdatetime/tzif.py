import struct
from dataclasses import dataclass, field
from typing import IO

from .models import TimeTypeInfo
from .posix import PosixTzInfo


@dataclass
class TZifHeader:
    version: int
    is_utc_flag_count: int
    wall_standard_flag_count: int
    leap_second_count: int
    transitions_count: int
    local_time_type_count: int
    abbrev_byte_count: int

    _FORMAT = ">4s1c15x6I"  # magic, version, reserved, six counts

    @classmethod
    def read(cls, file: IO[bytes]) -> "TZifHeader":
        header_size = struct.calcsize(cls._FORMAT)
        raw = file.read(header_size)
        if len(raw) != header_size:
            raise ValueError("Invalid TZif file: truncated header.")
        (
            magic,
            version_byte,
            is_utc_flag_count,
            wall_standard_flag_count,
            leap_second_count,
            transitions_count,
            local_time_type_count,
            abbrev_byte_count,
        ) = struct.unpack(cls._FORMAT, raw)

        if magic != b"TZif":
            raise ValueError("Invalid TZif file: Magic sequence not found.")

        version = 1 if version_byte == b"\x00" else int(version_byte.decode("ascii"))

        return cls(
            version,
            is_utc_flag_count,
            wall_standard_flag_count,
            leap_second_count,
            transitions_count,
            local_time_type_count,
            abbrev_byte_count,
        )

    def block_size(self, time_size: int) -> int:
        """Byte length of the data block that follows this header."""
        return (
            self.transitions_count * time_size
            + self.transitions_count
            + self.local_time_type_count * 6
            + self.abbrev_byte_count
            + self.leap_second_count * (time_size + 4)
            + self.wall_standard_flag_count
            + self.is_utc_flag_count
        )


@dataclass
class TZifData:
    """
    The parts of a TZif file needed to answer offset lookups.
    """

    version: int
    transition_times: list[int]  # seconds since the epoch, ascending
    time_type_indices: list[int]
    time_type_infos: list[TimeTypeInfo]
    abbrevs: str
    footer: PosixTzInfo | None = None
    leap_second_count: int = field(default=0)

    def abbrev_at(self, index: int) -> str:
        if index < 0 or index >= len(self.abbrevs):
            raise IndexError("Index out of range")
        return self.abbrevs[index:].partition("\x00")[0]

    @classmethod
    def read(cls, file: IO[bytes]) -> "TZifData":
        header = TZifHeader.read(file)
        if header.version < 2:
            return cls._read_block(file, header, time_size=4)

        # v2+ files repeat the data with 64-bit times; the v1 block is skipped
        file.read(header.block_size(4))
        v2_header = TZifHeader.read(file)
        data = cls._read_block(file, v2_header, time_size=8)
        data.footer = PosixTzInfo.read(file)
        return data

    @classmethod
    def _read_block(cls, file: IO[bytes], header: TZifHeader, time_size: int) -> "TZifData":
        count = header.transitions_count
        time_format = f">{count}q" if time_size == 8 else f">{count}i"
        transition_times = list(
            struct.unpack(time_format, cls._read_exact(file, time_size * count))
        )
        time_type_indices = list(cls._read_exact(file, count))

        ttinfo_format = ">i?B"  # 4-byte signed offset, 1-byte dst flag, 1-byte index
        ttinfo_size = struct.calcsize(ttinfo_format)
        time_type_infos = [
            TimeTypeInfo(*struct.unpack(ttinfo_format, cls._read_exact(file, ttinfo_size)))
            for _ in range(header.local_time_type_count)
        ]
        if not time_type_infos:
            raise ValueError("Invalid TZif file: no local time types.")
        if any(i >= len(time_type_infos) for i in time_type_indices):
            raise ValueError("Invalid TZif file: time type index out of range.")

        abbrevs = cls._read_exact(file, header.abbrev_byte_count).decode("ascii")

        # Leap seconds and the std/wall and UT/local indicators only matter
        # when rebuilding rules, not for offset lookups
        cls._read_exact(
            file,
            header.leap_second_count * (time_size + 4)
            + header.wall_standard_flag_count
            + header.is_utc_flag_count,
        )

        return cls(
            header.version,
            transition_times,
            time_type_indices,
            time_type_infos,
            abbrevs,
            leap_second_count=header.leap_second_count,
        )

    @staticmethod
    def _read_exact(file: IO[bytes], size: int) -> bytes:
        data = file.read(size)
        if len(data) != size:
            raise ValueError("Invalid TZif file: unexpected end of data.")
        return data
