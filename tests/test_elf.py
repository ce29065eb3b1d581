import pytest

from xv6sim.elf import (
    ELF_PROG_FLAG_EXEC,
    ELF_PROG_FLAG_READ,
    ELF_PROG_FLAG_WRITE,
    ELF_PROG_LOAD,
    HEADER_SIZE,
    ElfError,
    ElfHeader,
    ProgramHeader,
    read_program_headers,
)


def _sample_header(phnum=2):
    return ElfHeader(type=2, machine=3, version=1, entry=0x1000, phoff=HEADER_SIZE, phnum=phnum)


def _sample_programs():
    return [
        ProgramHeader(
            type=ELF_PROG_LOAD,
            off=0x1000,
            vaddr=0x1000,
            paddr=0x1000,
            filesz=0x200,
            memsz=0x300,
            flags=ELF_PROG_FLAG_READ | ELF_PROG_FLAG_EXEC,
            align=0x1000,
        ),
        ProgramHeader(
            type=ELF_PROG_LOAD,
            off=0x2000,
            vaddr=0x2000,
            filesz=0x40,
            memsz=0x40,
            flags=ELF_PROG_FLAG_READ | ELF_PROG_FLAG_WRITE,
        ),
    ]


def test_header_starts_with_magic():
    assert _sample_header().pack()[:4] == b"\x7fELF"


def test_header_size():
    assert len(ElfHeader().pack()) == 52


def test_header_round_trip():
    header = _sample_header()
    assert ElfHeader.parse(header.pack()) == header


def test_header_parse_ignores_trailing_data():
    header = _sample_header()
    assert ElfHeader.parse(header.pack() + b"extra") == header


def test_bad_magic():
    data = b"\x00ELF" + _sample_header().pack()[4:]
    with pytest.raises(ElfError):
        ElfHeader.parse(data)


def test_truncated_header():
    with pytest.raises(ElfError):
        ElfHeader.parse(_sample_header().pack()[:-1])


def test_bad_ident_length():
    with pytest.raises(ElfError):
        ElfHeader(ident=b"short").pack()


def test_program_header_round_trip():
    for ph in _sample_programs():
        assert ProgramHeader.parse(ph.pack()) == ph


def test_truncated_program_header():
    with pytest.raises(ElfError):
        ProgramHeader.parse(b"\x00" * 31)


def test_read_program_headers():
    programs = _sample_programs()
    image = _sample_header().pack() + b"".join(ph.pack() for ph in programs)
    assert read_program_headers(image) == programs


def test_read_program_headers_none():
    assert read_program_headers(_sample_header(phnum=0).pack()) == []


def test_read_program_headers_out_of_bounds():
    programs = _sample_programs()
    image = _sample_header(phnum=3).pack() + b"".join(ph.pack() for ph in programs)
    with pytest.raises(ElfError):
        read_program_headers(image)