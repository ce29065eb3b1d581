"""Count lines, words and bytes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import BinaryIO, Sequence

BUFSIZE = 512
WHITESPACE = frozenset(b" \r\t\n\v")


@dataclass(frozen=True)
class WordCount:
    lines: int
    words: int
    chars: int

    def format(self, name: str) -> str:
        return f"{self.lines} {self.words} {self.chars} {name}"


def count(stream: BinaryIO) -> WordCount:
    """Count lines, words and bytes in a binary stream."""
    lines = words = chars = 0
    in_word = False
    for chunk in iter(lambda: stream.read(BUFSIZE), b""):
        chars += len(chunk)
        lines += chunk.count(b"\n")
        for byte in chunk:
            if byte in WHITESPACE:
                in_word = False
            elif not in_word:
                words += 1
                in_word = True
    return WordCount(lines, words, chars)


def main(argv: Sequence[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        if not args:
            print(count(sys.stdin.buffer).format(""))
            return 0
        for name in args:
            try:
                handle = open(name, "rb")
            except OSError:
                print(f"wc: cannot open {name}")
                return 1
            with handle:
                print(count(handle).format(name))
    except OSError:
        print("wc: read error")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())