"""Spin locks and sleep locks for threads of a simulated kernel."""

from __future__ import annotations

import threading
from typing import Optional


class LockError(RuntimeError):
    """Raised when a lock is used in a way that would corrupt it."""


class SpinLock:
    """Mutual exclusion lock owned by the thread that acquired it."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._lock = threading.Lock()
        self.owner: Optional[int] = None

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def acquire(self) -> None:
        """Take the lock, waiting until it is free."""
        if self.holding():
            raise LockError(f"acquire {self.name}")
        self._lock.acquire()
        self.owner = threading.get_ident()

    def release(self) -> None:
        """Give up the lock; the caller must hold it."""
        if not self.holding():
            raise LockError(f"release {self.name}")
        self.owner = None
        self._lock.release()

    def holding(self) -> bool:
        """Whether the calling thread holds the lock."""
        return self._lock.locked() and self.owner == threading.get_ident()

    def __enter__(self) -> SpinLock:
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class SleepLock:
    """Long-term lock held by a process id; waiters sleep until it is free."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._lk = SpinLock("sleep lock")
        self._wakeup = threading.Condition(self._lk._lock)

    def acquire(self, pid: int) -> None:
        """Take the lock for pid, sleeping while another holder has it."""
        with self._lk:
            while self.locked:
                self._lk.owner = None
                self._wakeup.wait()
                self._lk.owner = threading.get_ident()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        """Free the lock and wake every sleeper."""
        with self._lk:
            self.locked = False
            self.pid = 0
            self._wakeup.notify_all()

    def holding(self, pid: int) -> bool:
        """Whether pid holds the lock."""
        with self._lk:
            return self.locked and self.pid == pid