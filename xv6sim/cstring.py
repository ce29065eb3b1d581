"""NUL-terminated string helpers over bytes."""

from __future__ import annotations

from itertools import islice, zip_longest
from typing import BinaryIO, Union

BytesLike = Union[bytes, bytearray, memoryview, str]


def _as_bytes(s: BytesLike) -> bytes:
    if isinstance(s, str):
        return s.encode()
    return bytes(s)


def _terminated(s: BytesLike) -> bytes:
    data = _as_bytes(s)
    end = data.find(0)
    return data if end < 0 else data[:end]


def memcmp(a: BytesLike, b: BytesLike, n: int) -> int:
    """Compare the first n bytes; return the difference of the first mismatch."""
    a, b = _as_bytes(a), _as_bytes(b)
    if n < 0 or n > len(a) or n > len(b):
        raise ValueError("n exceeds the length of an operand")
    for x, y in zip(a[:n], b[:n]):
        if x != y:
            return x - y
    return 0


def strcmp(p: BytesLike, q: BytesLike) -> int:
    """Compare two NUL-terminated strings."""
    for x, y in zip_longest(_terminated(p), _terminated(q), fillvalue=0):
        if x != y:
            return x - y
    return 0


def strncmp(p: BytesLike, q: BytesLike, n: int) -> int:
    """Compare at most n characters of two NUL-terminated strings."""
    if n < 0:
        raise ValueError("n must not be negative")
    pairs = zip_longest(_terminated(p), _terminated(q), fillvalue=0)
    for x, y in islice(pairs, n):
        if x != y:
            return x - y
    return 0


def strncpy(src: BytesLike, n: int) -> bytes:
    """Copy into an n-byte field, NUL padded; not terminated if src fills it."""
    if n <= 0:
        return b""
    return _terminated(src)[:n].ljust(n, b"\0")


def safestrcpy(src: BytesLike, n: int) -> bytes:
    """Copy at most n-1 characters and always NUL-terminate."""
    if n <= 0:
        return b""
    return _terminated(src)[: n - 1] + b"\0"


def strlen(s: BytesLike) -> int:
    """Length up to the first NUL."""
    return len(_terminated(s))


def strchr(s: BytesLike, c: int | BytesLike) -> int | None:
    """Index of the first c before the terminating NUL, or None."""
    if not isinstance(c, int):
        raw = _as_bytes(c)
        if len(raw) != 1:
            raise ValueError("c must be a single character")
        c = raw[0]
    if c == 0:
        return None
    index = _terminated(s).find(c)
    return None if index < 0 else index


def atoi(s: BytesLike) -> int:
    """Value of the leading decimal digits; 0 if there are none."""
    n = 0
    for byte in _as_bytes(s):
        if not 0x30 <= byte <= 0x39:
            break
        n = n * 10 + byte - 0x30
    return n


def gets(stream: BinaryIO, limit: int) -> bytes:
    """Read up to limit-1 bytes from a binary stream, stopping after a newline or CR."""
    line = bytearray()
    while len(line) + 1 < limit:
        c = stream.read(1)
        if not c:
            break
        line += c
        if c in (b"\n", b"\r"):
            break
    return bytes(line)