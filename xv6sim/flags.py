"""Open flags, file types and the stat record."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

_STAT = struct.Struct("<hxxiIhxxI")


class OpenFlag(enum.IntFlag):
    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200


class FileType(enum.IntEnum):
    DIR = 1
    FILE = 2
    DEV = 3


@dataclass
class Stat:
    """Status information for a file."""

    type: FileType
    dev: int = 0
    ino: int = 0
    nlink: int = 0
    size: int = 0

    def pack(self) -> bytes:
        return _STAT.pack(int(self.type), self.dev, self.ino, self.nlink, self.size)

    @classmethod
    def unpack(cls, data: bytes) -> Stat:
        if len(data) != _STAT.size:
            raise ValueError(f"stat record must be {_STAT.size} bytes, got {len(data)}")
        kind, dev, ino, nlink, size = _STAT.unpack(data)
        try:
            file_type = FileType(kind)
        except ValueError:
            raise ValueError(f"unknown file type {kind}") from None
        return cls(file_type, dev, ino, nlink, size)