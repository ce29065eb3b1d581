"""Two-level x86 page tables kept in simulated physical memory."""

from __future__ import annotations

import struct
from typing import Dict, Iterator, List, Optional, Tuple

from .mmu import (
    DEVSPACE,
    EXTMEM,
    KERNBASE,
    KERNLINK,
    NPDENTRIES,
    PGSIZE,
    PHYSTOP,
    PTE_P,
    PTE_U,
    PTE_W,
    UINT_MASK,
    p2v,
    pdx,
    pg_round_down,
    pg_round_up,
    pgaddr,
    pte_addr,
    pte_flags,
    ptx,
    v2p,
)

_WORD = struct.Struct("<I")


class VMError(RuntimeError):
    """Raised when a mapping operation is invalid."""


class PhysicalMemory:
    """Page-granular physical memory with a free-page allocator.

    Only pages handed out by kalloc hold data; they are zeroed when allocated.
    """

    def __init__(self, start: int = 0x400000, stop: int = PHYSTOP) -> None:
        if start % PGSIZE or stop % PGSIZE or not 0 <= start < stop:
            raise ValueError("start and stop must be page aligned with start < stop")
        self.start = start
        self.stop = stop
        self._pages: Dict[int, bytearray] = {}
        self._free: List[int] = []
        self._next = start

    @property
    def allocated(self) -> int:
        """Number of pages currently in use."""
        return len(self._pages)

    def kalloc(self) -> int:
        """Allocate one zeroed page and return its physical address."""
        if self._free:
            pa = self._free.pop()
        elif self._next < self.stop:
            pa = self._next
            self._next += PGSIZE
        else:
            raise MemoryError("out of physical memory")
        self._pages[pa] = bytearray(PGSIZE)
        return pa

    def kfree(self, pa: int) -> None:
        """Return a page obtained from kalloc."""
        if pa % PGSIZE or not self.start <= pa < self.stop:
            raise VMError("kfree")
        if pa not in self._pages:
            raise VMError(f"kfree: page {pa:#x} is not allocated")
        del self._pages[pa]
        self._free.append(pa)

    def _page(self, pa: int) -> bytearray:
        page = self._pages.get(pa - pa % PGSIZE)
        if page is None:
            raise VMError(f"physical address {pa:#x} is not allocated")
        return page

    def _span(self, pa: int, n: int) -> Iterator[Tuple[bytearray, int, int]]:
        while n > 0:
            page = self._page(pa)
            offset = pa % PGSIZE
            count = min(n, PGSIZE - offset)
            yield page, offset, count
            pa += count
            n -= count

    def read(self, pa: int, n: int) -> bytes:
        """Read n bytes starting at a physical address."""
        if n < 0:
            raise ValueError("n must not be negative")
        return b"".join(
            bytes(page[offset:offset + count])
            for page, offset, count in list(self._span(pa, n))
        )

    def write(self, pa: int, data: bytes) -> None:
        """Write bytes starting at a physical address."""
        data = bytes(data)
        pos = 0
        for page, offset, count in list(self._span(pa, len(data))):
            page[offset:offset + count] = data[pos:pos + count]
            pos += count

    def _word(self, pa: int) -> int:
        return _WORD.unpack_from(self._page(pa), pa % PGSIZE)[0]

    def _set_word(self, pa: int, value: int) -> None:
        _WORD.pack_into(self._page(pa), pa % PGSIZE, value & UINT_MASK)


class PageTable:
    """A page directory and its page tables, all held in physical memory."""

    def __init__(self, memory: PhysicalMemory) -> None:
        self.memory = memory
        self.root = memory.kalloc()
        self.kernel_data: Optional[int] = None

    def walk(self, va: int, alloc: bool = False) -> Optional[int]:
        """Physical address of the PTE for va, creating its table if alloc.

        Returns None when the table is missing and alloc is false.
        """
        pde_pa = self.root + 4 * pdx(va)
        pde = self.memory._word(pde_pa)
        if pde & PTE_P:
            table = pte_addr(pde)
        else:
            if not alloc:
                return None
            table = self.memory.kalloc()
            self.memory._set_word(pde_pa, table | PTE_P | PTE_W | PTE_U)
        return table + 4 * ptx(va)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering [va, va+size) to physical memory from pa."""
        a = pg_round_down(va)
        last = pg_round_down(va + size - 1)
        while True:
            pte = self.walk(a, alloc=True)
            if self.memory._word(pte) & PTE_P:
                raise VMError("remap")
            self.memory._set_word(pte, pa | perm | PTE_P)
            if a == last:
                break
            a = (a + PGSIZE) & UINT_MASK
            pa = (pa + PGSIZE) & UINT_MASK

    def map_kernel(self, data_addr: int) -> None:
        """Add the kernel's mappings; data_addr is where kernel data begins."""
        if p2v(PHYSTOP) > DEVSPACE:
            raise VMError("PHYSTOP too high")
        if data_addr % PGSIZE or not KERNLINK < data_addr < p2v(PHYSTOP):
            raise ValueError(f"kernel data address {data_addr:#x} is out of range")
        kmap = (
            (KERNBASE, 0, EXTMEM, PTE_W),
            (KERNLINK, v2p(KERNLINK), v2p(data_addr), 0),
            (data_addr, v2p(data_addr), PHYSTOP, PTE_W),
            (DEVSPACE, DEVSPACE, 0, PTE_W),
        )
        for virt, phys_start, phys_end, perm in kmap:
            self.map_pages(virt, (phys_end - phys_start) & UINT_MASK, phys_start, perm)
        self.kernel_data = data_addr

    def alloc_uvm(self, vbase: int, old_limit: int, new_limit: int) -> int:
        """Grow user memory from old_limit to new_limit; return the new limit.

        vbase is not consulted. On running out of memory the pages added
        so far are released and MemoryError is raised.
        """
        if new_limit >= KERNBASE:
            raise VMError(f"limit {new_limit:#x} reaches kernel space")
        if new_limit < old_limit:
            return old_limit
        a = pg_round_up(old_limit)
        while a < new_limit:
            try:
                mem = self.memory.kalloc()
            except MemoryError:
                self.dealloc_uvm(new_limit, old_limit)
                raise
            try:
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except MemoryError:
                self.dealloc_uvm(new_limit, old_limit)
                self.memory.kfree(mem)
                raise
            a += PGSIZE
        return new_limit

    def dealloc_uvm(self, old_limit: int, new_limit: int) -> int:
        """Free user pages from new_limit up to old_limit; return the new limit."""
        if new_limit >= old_limit:
            return old_limit
        a = pg_round_up(new_limit)
        while a < old_limit:
            pte = self.walk(a)
            if pte is None:
                a = (pgaddr(pdx(a) + 1, 0, 0) - PGSIZE) & UINT_MASK
            else:
                entry = self.memory._word(pte)
                if entry & PTE_P:
                    pa = pte_addr(entry)
                    if pa == 0:
                        raise VMError("kfree")
                    self.memory.kfree(pa)
                    self.memory._set_word(pte, 0)
            a += PGSIZE
        return new_limit

    def free(self) -> None:
        """Release all user pages, every page table and the directory."""
        self.dealloc_uvm(KERNBASE, 0)
        for i in range(NPDENTRIES):
            pde = self.memory._word(self.root + 4 * i)
            if pde & PTE_P:
                self.memory.kfree(pte_addr(pde))
        self.memory.kfree(self.root)

    def clear_pte_u(self, va: int) -> None:
        """Make the page at va inaccessible to user code."""
        pte = self.walk(va)
        if pte is None:
            raise VMError("clearpteu")
        self.memory._set_word(pte, self.memory._word(pte) & ~PTE_U)

    def copy(self, vlimit: int) -> PageTable:
        """A new table with its own copies of the user pages below vlimit."""
        child = PageTable(self.memory)
        try:
            if self.kernel_data is not None:
                child.map_kernel(self.kernel_data)
            for va in range(PGSIZE, vlimit, PGSIZE):
                pte = self.walk(va)
                if pte is None:
                    raise VMError("copyuvm: pte should exist")
                entry = self.memory._word(pte)
                if not entry & PTE_P:
                    raise VMError("copyuvm: page not present")
                pa = pte_addr(entry)
                mem = self.memory.kalloc()
                self.memory.write(mem, self.memory.read(pa, PGSIZE))
                try:
                    child.map_pages(va, PGSIZE, mem, pte_flags(entry))
                except MemoryError:
                    self.memory.kfree(mem)
                    raise
        except (MemoryError, VMError):
            child.free()
            raise
        return child

    def uva2ka(self, va: int) -> Optional[int]:
        """Kernel address of the user page at va, or None if not a user page."""
        pte = self.walk(va)
        if pte is None:
            return None
        entry = self.memory._word(pte)
        if not entry & PTE_P or not entry & PTE_U:
            return None
        return p2v(pte_addr(entry))

    def copy_out(self, va: int, data: bytes) -> None:
        """Copy bytes to user address va; only user pages are writable this way."""
        data = bytes(data)
        pos = 0
        while pos < len(data):
            va0 = pg_round_down(va)
            ka = self.uva2ka(va0)
            if ka is None:
                raise VMError(f"copyout: {va0:#x} is not a user page")
            n = min(PGSIZE - (va - va0), len(data) - pos)
            self.memory.write(v2p(ka) + (va - va0), data[pos:pos + n])
            pos += n
            va = va0 + PGSIZE

    def _set_protection(
        self, addr: int, length: int, vbase: int, vlimit: int, writable: bool
    ) -> None:
        if length <= 0:
            raise VMError("Len is less than or equal to zero!")
        if addr % PGSIZE != 0:
            raise VMError("Unaligned!")
        if addr < vbase or addr > vlimit:
            raise VMError(
                f"Beyond Address Space! {addr + length * PGSIZE} > {vlimit}"
            )
        for va in range(addr, addr + length * PGSIZE, PGSIZE):
            pte = self.walk(va)
            if pte is None:
                continue
            entry = self.memory._word(pte)
            if not entry & PTE_U or not entry & PTE_P:
                raise VMError(f"page {va:#x} is not a present user page")
            entry = entry | PTE_W if writable else entry & ~PTE_W
            self.memory._set_word(pte, entry)

    def mprotect(self, addr: int, length: int, vbase: int, vlimit: int) -> None:
        """Make length pages from addr read-only."""
        self._set_protection(addr, length, vbase, vlimit, writable=False)

    def munprotect(self, addr: int, length: int, vbase: int, vlimit: int) -> None:
        """Make length pages from addr writable again."""
        self._set_protection(addr, length, vbase, vlimit, writable=True)