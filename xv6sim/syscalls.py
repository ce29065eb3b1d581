"""System call and trap numbers, argument fetching and dispatch."""

from __future__ import annotations

import enum
import struct
import sys
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .mmu import UINT_MASK
from .vm import PageTable, VMError


class Syscall(enum.IntEnum):
    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    MPROTECT = 22
    MUNPROTECT = 23


class Trap(enum.IntEnum):
    DIVIDE = 0
    DEBUG = 1
    NMI = 2
    BRKPT = 3
    OFLOW = 4
    BOUND = 5
    ILLOP = 6
    DEVICE = 7
    DBLFLT = 8
    TSS = 10
    SEGNP = 11
    STACK = 12
    GPFLT = 13
    PGFLT = 14
    FPERR = 16
    ALIGN = 17
    MCHK = 18
    SIMDERR = 19
    IRQ0 = 32
    SYSCALL = 64
    DEFAULT = 500


IRQ_TIMER = 0
IRQ_KBD = 1
IRQ_COM1 = 4
IRQ_IDE = 14
IRQ_ERROR = 19
IRQ_SPURIOUS = 31


class BadAddress(ValueError):
    """Raised when a user address lies outside the process's address space."""


@dataclass
class Process:
    """A process as seen by system calls.

    memory holds the bytes of the address space [vbase, vlimit); esp is the
    saved user stack pointer, which points at a return address followed by
    the call's arguments. pgdir, if set, is used for page protection calls.
    """

    pid: int
    name: str = ""
    vbase: int = 0x1000
    vlimit: int = 0x2000
    esp: int = 0
    eax: int = 0
    killed: bool = False
    memory: Optional[bytearray] = None
    pgdir: Optional[PageTable] = None

    def __post_init__(self) -> None:
        if self.vlimit < self.vbase:
            raise ValueError("vlimit lies below vbase")
        size = self.vlimit - self.vbase
        if self.memory is None:
            self.memory = bytearray(size)
        elif len(self.memory) != size:
            raise ValueError(f"memory must be {size} bytes, got {len(self.memory)}")

    def fetch_int(self, addr: int) -> int:
        """The 32-bit signed integer at a user address."""
        addr &= UINT_MASK
        end = (addr + 4) & UINT_MASK
        if (
            addr >= self.vlimit
            or end > self.vlimit
            or addr < self.vbase
            or end <= self.vbase
        ):
            raise BadAddress(f"bad integer address {addr:#x}")
        return struct.unpack_from("<i", self.memory, addr - self.vbase)[0]

    def fetch_str(self, addr: int) -> bytes:
        """The NUL-terminated string at a user address, without the NUL."""
        addr &= UINT_MASK
        if addr >= self.vlimit or addr < self.vbase:
            raise BadAddress(f"bad string address {addr:#x}")
        start = addr - self.vbase
        end = self.memory.find(0, start)
        if end < 0:
            raise BadAddress(f"unterminated string at {addr:#x}")
        return bytes(self.memory[start:end])

    def arg_int(self, n: int) -> int:
        """The nth 32-bit system call argument."""
        return self.fetch_int(self.esp + 4 + 4 * n)

    def arg_ptr(self, n: int, size: int) -> int:
        """The nth argument as the address of size bytes inside the process."""
        addr = self.arg_int(n) & UINT_MASK
        end = (addr + size) & UINT_MASK
        if (
            size < 0
            or addr >= self.vlimit
            or end > self.vlimit
            or addr < self.vbase
            or end <= self.vbase
        ):
            raise BadAddress(f"bad pointer {addr:#x} of size {size}")
        return addr

    def arg_str(self, n: int) -> bytes:
        """The nth argument as a NUL-terminated string."""
        return self.fetch_str(self.arg_int(n))


Handler = Callable[[Process], int]


def _sys_getpid(proc: Process) -> int:
    return proc.pid


def _protect(proc: Process, writable: bool) -> int:
    addr = proc.arg_int(0)
    length = proc.arg_int(1)
    if proc.pgdir is None:
        return -1
    change = proc.pgdir.munprotect if writable else proc.pgdir.mprotect
    try:
        change(addr, length, proc.vbase, proc.vlimit)
    except VMError:
        return -1
    return 0


def _sys_mprotect(proc: Process) -> int:
    return _protect(proc, writable=False)


def _sys_munprotect(proc: Process) -> int:
    return _protect(proc, writable=True)


class SyscallTable:
    """Maps system call numbers to handlers; getpid and page protection are built in."""

    def __init__(self) -> None:
        self._handlers: Dict[int, Handler] = {}
        self.register(Syscall.GETPID, _sys_getpid)
        self.register(Syscall.MPROTECT, _sys_mprotect)
        self.register(Syscall.MUNPROTECT, _sys_munprotect)

    def register(self, num: int, handler: Handler) -> None:
        """Install handler for system call num."""
        if int(num) <= 0:
            raise ValueError(f"system call numbers start at 1, got {num}")
        self._handlers[int(num)] = handler

    def dispatch(self, proc: Process, num: int) -> int:
        """Run system call num for proc; the result is also left in proc.eax.

        A bad user address or an unknown call yields -1.
        """
        handler = self._handlers.get(int(num))
        if handler is None:
            print(f"{proc.pid} {proc.name}: unknown sys call {num}", file=sys.stderr)
            result = -1
        else:
            try:
                result = handler(proc)
            except BadAddress:
                result = -1
        proc.eax = result
        return result