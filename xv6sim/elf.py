"""Reading and writing ELF32 file and program headers."""

from __future__ import annotations

import struct
from dataclasses import dataclass

ELF_MAGIC = 0x464C457F

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_ELF_HEADER = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROG_HEADER = struct.Struct("<8I")

HEADER_SIZE = _ELF_HEADER.size
PROGRAM_HEADER_SIZE = _PROG_HEADER.size


class ElfError(ValueError):
    """Raised for malformed ELF data."""


@dataclass
class ElfHeader:
    """ELF file header."""

    ident: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = HEADER_SIZE
    phentsize: int = PROGRAM_HEADER_SIZE
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    @classmethod
    def parse(cls, data: bytes) -> ElfHeader:
        if len(data) < HEADER_SIZE:
            raise ElfError("truncated ELF header")
        magic, *rest = _ELF_HEADER.unpack_from(data)
        if magic != ELF_MAGIC:
            raise ElfError(f"bad ELF magic {magic:#x}")
        return cls(*rest)

    def pack(self) -> bytes:
        if len(self.ident) != 12:
            raise ElfError("ident must be 12 bytes")
        try:
            return _ELF_HEADER.pack(
                ELF_MAGIC,
                bytes(self.ident),
                self.type,
                self.machine,
                self.version,
                self.entry,
                self.phoff,
                self.shoff,
                self.flags,
                self.ehsize,
                self.phentsize,
                self.phnum,
                self.shentsize,
                self.shnum,
                self.shstrndx,
            )
        except struct.error as exc:
            raise ElfError(str(exc)) from exc


@dataclass
class ProgramHeader:
    """ELF program section header."""

    type: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    flags: int = 0
    align: int = 0

    @classmethod
    def parse(cls, data: bytes) -> ProgramHeader:
        if len(data) < PROGRAM_HEADER_SIZE:
            raise ElfError("truncated program header")
        return cls(*_PROG_HEADER.unpack_from(data))

    def pack(self) -> bytes:
        try:
            return _PROG_HEADER.pack(
                self.type,
                self.off,
                self.vaddr,
                self.paddr,
                self.filesz,
                self.memsz,
                self.flags,
                self.align,
            )
        except struct.error as exc:
            raise ElfError(str(exc)) from exc


def read_program_headers(data: bytes) -> list[ProgramHeader]:
    """Parse the file header of an image and return its program headers."""
    header = ElfHeader.parse(data)
    headers = []
    for i in range(header.phnum):
        start = header.phoff + i * PROGRAM_HEADER_SIZE
        end = start + PROGRAM_HEADER_SIZE
        if end > len(data):
            raise ElfError(f"program header {i} lies outside the image")
        headers.append(ProgramHeader.parse(data[start:end]))
    return headers