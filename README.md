# xv6sim

A Python model of the core pieces of a small x86 teaching kernel and its
user-space library. Everything runs as ordinary Python objects: page tables
live in simulated physical memory, processes are plain records, and no
emulator is needed. It is meant for study and experiment.

## Modules

- `xv6sim.mmu`: kernel parameters, memory-layout and paging constants, and
  address arithmetic: `pdx`, `ptx`, `pgaddr`, `pg_round_up`,
  `pg_round_down`, `pte_addr`, `pte_flags`, `v2p` and `p2v`. It also
  builds and packs 8-byte descriptors. `SegmentDescriptor.seg` and
  `SegmentDescriptor.seg16` make segment descriptors, `GateDescriptor.make`
  makes interrupt and trap gates, and `seg_asm` gives the raw bytes of a
  flat segment. Both descriptor classes have `pack` and `unpack`.
- `xv6sim.elf`: `ElfHeader` and `ProgramHeader` with `parse` and `pack`,
  and `read_program_headers(data)` for a whole image. Malformed data raises
  `ElfError`.
- `xv6sim.flags`: `OpenFlag` (`RDONLY`, `WRONLY`, `RDWR`, `CREATE`),
  `FileType` (`DIR`, `FILE`, `DEV`) and the `Stat` record with `pack` and
  `unpack`.
- `xv6sim.cstring`: NUL-terminated string helpers over bytes: `memcmp`,
  `strcmp`, `strncmp`, `strncpy`, `safestrcpy`, `strlen`, `strchr`, `atoi`,
  and `gets(stream, limit)`, which reads one line from a binary stream.
- `xv6sim.wc`: `count(stream)` returns a `WordCount` of lines, words and
  bytes. `WordCount.format(name)` renders it, and `main` is the `xv6-wc`
  command.
- `xv6sim.shell`: `tokenize`, `parse_command` and `parse_cd`.
  `parse_command` builds a tree of `ExecCmd`, `RedirCmd`, `PipeCmd`,
  `ListCmd` and `BackCmd`, and raises `ShellSyntaxError` on bad input.
- `xv6sim.umalloc`: `Allocator`, a first-fit free-list allocator over a
  simulated heap that grows up to a limit. It has `malloc`, `free` and
  `free_blocks`. `malloc` raises `MemoryError` when the heap is exhausted.
- `xv6sim.locks`: `SpinLock` is owned by the acquiring thread and is usable
  as a context manager. `SleepLock` is held on behalf of a process id.
  Misuse raises `LockError`.
- `xv6sim.vm`: `PhysicalMemory` is a page allocator with `kalloc`, `kfree`,
  `read` and `write`. `PageTable` is a two-level page table and provides:
  - `walk`, `map_pages` and `map_kernel`;
  - `alloc_uvm`, `dealloc_uvm` and `free`;
  - `clear_pte_u`, `copy`, `uva2ka` and `copy_out`;
  - `mprotect` and `munprotect`.

  Invalid operations raise `VMError`.
- `xv6sim.syscalls`: the `Syscall` and `Trap` numbers and IRQ constants,
  plus `Process` and `SyscallTable`.
  - `Process` fetches integer, pointer and string arguments from the
    process's memory with `fetch_int`, `fetch_str`, `arg_int`, `arg_ptr`
    and `arg_str`. Out-of-range addresses raise `BadAddress`.
  - `SyscallTable` maps numbers to handlers. `getpid`, `mprotect` and
    `munprotect` are registered by default, and `register` adds more.
  - `SyscallTable.dispatch` leaves the result in `proc.eax`. An unknown
    call or a bad address gives -1, and an unknown call is also reported
    on standard error.

## Install

```
pip install .
```

## Examples

Parse a shell line:

```python
from xv6sim.shell import parse_command

cmd = parse_command("cat < in | wc > out\n")
# PipeCmd(left=RedirCmd(ExecCmd(["cat"]), "in", ...),
#         right=RedirCmd(ExecCmd(["wc"]), "out", ...))
```

Map user pages and make one read-only:

```python
from xv6sim.vm import PhysicalMemory, PageTable

pgdir = PageTable(PhysicalMemory())
limit = pgdir.alloc_uvm(0x1000, 0x1000, 0x3000)
pgdir.mprotect(0x1000, 1, 0x1000, limit)
```

Count lines, words and bytes from the command line:

```
xv6-wc README.md
```

`xv6-wc` prints `lines words bytes name` for each file named. With no
arguments it reads standard input and prints an empty name. If a file
cannot be opened, it prints `wc: cannot open NAME` and exits with status 1.

## What it does not do

This is a set of models, not a running kernel. There is no file system,
disk, buffer cache, process table or scheduler. The shell module parses
command lines but does not run them. Of the system calls, only `getpid`,
`mprotect` and `munprotect` have handlers. Other calls must be supplied
through `SyscallTable.register`.

## Tests

```
pip install .[test]
pytest
```