"""Parsing of shell command lines into command trees."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

from .flags import OpenFlag

MAXARGS = 10
WORD = "word"

_WHITESPACE = " \t\r\n\v"
_LEXEME = re.compile(r"[ \t\r\n\v]*(?:(>>|[<|>&;()])|([^ \t\r\n\v<|>&;()]+))")

_REDIRECTIONS = frozenset({"<", ">", ">>"})
_EXEC_END = frozenset({"|", ")", "&", ";"})


class ShellSyntaxError(ValueError):
    """Raised when a command line cannot be parsed."""


@dataclass
class ExecCmd:
    """Run a program with arguments; argv[0] names the program."""

    argv: List[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run cmd with file descriptor fd reopened on file."""

    cmd: "Command"
    file: str
    mode: OpenFlag
    fd: int


@dataclass
class PipeCmd:
    """Connect the output of left to the input of right."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """Run left, wait for it, then run right."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """Run cmd in the background."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


def _scan(line: str) -> Iterator[Tuple[str, str, int]]:
    line = line.split("\0", 1)[0]
    end = len(line.rstrip(_WHITESPACE))
    pos = 0
    while pos < end:
        match = _LEXEME.match(line, pos)
        assert match is not None
        symbol, word = match.groups()
        if word is not None:
            yield WORD, word, match.start(2)
        else:
            yield symbol, symbol, match.start(1)
        pos = match.end()


def tokenize(line: str) -> List[Tuple[str, str]]:
    """Split a line into (kind, text) pairs; kind is a symbol or "word"."""
    return [(kind, text) for kind, text, _ in _scan(line)]


class _Parser:
    def __init__(self, line: str) -> None:
        self.line = line
        self.items = list(_scan(line))
        self.pos = 0

    def peek(self, kinds: frozenset) -> bool:
        return self.pos < len(self.items) and self.items[self.pos][0] in kinds

    def take(self) -> Optional[Tuple[str, str, int]]:
        if self.pos >= len(self.items):
            return None
        item = self.items[self.pos]
        self.pos += 1
        return item

    def at_end(self) -> bool:
        return self.pos >= len(self.items)

    def rest(self) -> str:
        return self.line[self.items[self.pos][2]:]

    def parse_line(self) -> Command:
        cmd = self.parse_pipe()
        while self.peek(frozenset("&")):
            self.take()
            cmd = BackCmd(cmd)
        if self.peek(frozenset(";")):
            self.take()
            cmd = ListCmd(cmd, self.parse_line())
        return cmd

    def parse_pipe(self) -> Command:
        cmd = self.parse_exec()
        if self.peek(frozenset("|")):
            self.take()
            cmd = PipeCmd(cmd, self.parse_pipe())
        return cmd

    def parse_redirs(self, cmd: Command) -> Command:
        while self.peek(_REDIRECTIONS):
            kind = self.take()[0]
            target = self.take()
            if target is None or target[0] != WORD:
                raise ShellSyntaxError("missing file for redirection")
            if kind == "<":
                cmd = RedirCmd(cmd, target[1], OpenFlag.RDONLY, 0)
            else:
                cmd = RedirCmd(cmd, target[1], OpenFlag.WRONLY | OpenFlag.CREATE, 1)
        return cmd

    def parse_block(self) -> Command:
        self.take()
        cmd = self.parse_line()
        if not self.peek(frozenset(")")):
            raise ShellSyntaxError("syntax - missing )")
        self.take()
        return self.parse_redirs(cmd)

    def parse_exec(self) -> Command:
        if self.peek(frozenset("(")):
            return self.parse_block()
        exec_cmd = ExecCmd()
        result = self.parse_redirs(exec_cmd)
        while not self.peek(_EXEC_END):
            item = self.take()
            if item is None:
                break
            if item[0] != WORD:
                raise ShellSyntaxError("syntax")
            exec_cmd.argv.append(item[1])
            if len(exec_cmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            result = self.parse_redirs(result)
        return result


def parse_command(line: str) -> Command:
    """Parse a whole command line into a command tree."""
    parser = _Parser(line)
    cmd = parser.parse_line()
    if not parser.at_end():
        raise ShellSyntaxError(f"leftovers: {parser.rest()}")
    return cmd


def parse_cd(line: str) -> Optional[str]:
    """The directory of a "cd DIR" line, or None if the line is not a cd."""
    if not line.startswith("cd "):
        return None
    target = line[3:]
    if target.endswith(("\n", "\r")):
        target = target[:-1]
    return target