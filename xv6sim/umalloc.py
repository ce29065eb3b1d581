"""A first-fit free-list allocator over a simulated, growable heap."""

from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple

from .mmu import KERNBASE

HEADER_SIZE = 8
MIN_UNITS = 4096

_BASE = 0


class Allocator:
    """Circular free list of blocks, each led by a one-unit header.

    Addresses are byte addresses in a simulated heap that starts at
    heap_start and grows, like sbrk, up to heap_limit.
    """

    def __init__(self, heap_start: int = 0x1000, heap_limit: int = KERNBASE) -> None:
        if heap_start <= _BASE or heap_start % HEADER_SIZE:
            raise ValueError("heap_start must be positive and header aligned")
        if heap_limit < heap_start:
            raise ValueError("heap_limit lies below heap_start")
        self.heap_start = heap_start
        self.heap_limit = heap_limit
        self.brk = heap_start
        self._size: Dict[int, int] = {}
        self._next: Dict[int, int] = {}
        self._allocated: Set[int] = set()
        self._freep: Optional[int] = None

    def _end(self, header: int) -> int:
        return header + self._size[header] * HEADER_SIZE

    def _sbrk(self, nbytes: int) -> Optional[int]:
        if self.brk + nbytes > self.heap_limit:
            return None
        old = self.brk
        self.brk += nbytes
        return old

    def _morecore(self, nunits: int) -> Optional[int]:
        nunits = max(nunits, MIN_UNITS)
        header = self._sbrk(nunits * HEADER_SIZE)
        if header is None:
            return None
        self._size[header] = nunits
        self._allocated.add(header)
        self.free(header + HEADER_SIZE)
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Return the address of a block of at least nbytes bytes."""
        if nbytes < 0:
            raise ValueError("nbytes must not be negative")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            self._next[_BASE] = _BASE
            self._size[_BASE] = 0
            self._freep = _BASE
        prevp = self._freep
        p = self._next[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._next[prevp] = self._next.pop(p)
                else:
                    self._size[p] -= nunits
                    p = self._end(p)
                    self._size[p] = nunits
                self._freep = prevp
                self._allocated.add(p)
                return p + HEADER_SIZE
            if p == self._freep:
                found = self._morecore(nunits)
                if found is None:
                    raise MemoryError(f"cannot allocate {nbytes} bytes")
                p = found
            prevp, p = p, self._next[p]

    def free(self, addr: int) -> None:
        """Return a block from malloc to the free list, merging neighbours."""
        bp = addr - HEADER_SIZE
        if bp not in self._allocated:
            raise ValueError(f"address {addr:#x} was not allocated")
        self._allocated.discard(bp)
        p = self._freep
        assert p is not None
        while not (p < bp < self._next[p]):
            if p >= self._next[p] and (bp > p or bp < self._next[p]):
                break
            p = self._next[p]
        following = self._next[p]
        if self._end(bp) == following:
            self._size[bp] += self._size.pop(following)
            self._next[bp] = self._next.pop(following)
        else:
            self._next[bp] = following
        if self._end(p) == bp:
            self._size[p] += self._size.pop(bp)
            self._next[p] = self._next.pop(bp)
        else:
            self._next[p] = bp
        self._freep = p

    def free_blocks(self) -> List[Tuple[int, int]]:
        """(header address, size in bytes) of every free block, by address."""
        if self._freep is None:
            return []
        blocks = []
        p = self._next[_BASE]
        while p != _BASE:
            blocks.append((p, self._size[p] * HEADER_SIZE))
            p = self._next[p]
        return sorted(blocks)