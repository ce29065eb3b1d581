import threading

import pytest

from xv6sim.locks import LockError, SleepLock, SpinLock


def test_spinlock_acquire_release():
    lock = SpinLock("test")
    assert lock.holding() is False
    lock.acquire()
    assert lock.holding() is True
    lock.release()
    assert lock.holding() is False


def test_spinlock_double_acquire():
    lock = SpinLock("test")
    lock.acquire()
    with pytest.raises(LockError, match="acquire"):
        lock.acquire()
    lock.release()
    assert lock.locked is False


def test_spinlock_release_unheld():
    with pytest.raises(LockError, match="release"):
        SpinLock("test").release()


def test_spinlock_other_thread_not_holding():
    lock = SpinLock()
    result = []
    with lock:
        worker = threading.Thread(target=lambda: result.append(lock.holding()))
        worker.start()
        worker.join()
        assert lock.holding() is True
    assert result == [False]


def test_spinlock_other_thread_cannot_release():
    lock = SpinLock()
    errors = []

    def attempt():
        try:
            lock.release()
        except LockError as exc:
            errors.append(exc)

    with lock:
        worker = threading.Thread(target=attempt)
        worker.start()
        worker.join()
        assert lock.holding() is True
    assert len(errors) == 1
    assert "release" in str(errors[0])
    assert lock.holding() is False


def test_spinlock_excludes():
    lock = SpinLock()
    counter = [0]
    held = []

    def bump():
        for _ in range(1000):
            with lock:
                held.append(lock.holding())
                value = counter[0]
                counter[0] = value + 1

    workers = [threading.Thread(target=bump) for _ in range(4)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    assert counter[0] == 4000
    assert len(held) == 4000
    assert all(held)
    assert lock.holding() is False


def test_sleeplock_holding_by_pid():
    lock = SleepLock("inode")
    lock.acquire(7)
    assert lock.holding(7) is True
    assert lock.holding(8) is False
    lock.release()
    assert lock.holding(7) is False
    assert lock.pid == 0


def test_sleeplock_waiter_blocks_until_release():
    lock = SleepLock("buf")
    lock.acquire(1)
    acquired = threading.Event()

    def waiter():
        lock.acquire(2)
        acquired.set()

    worker = threading.Thread(target=waiter)
    worker.start()
    assert acquired.wait(0.2) is False
    lock.release()
    assert acquired.wait(5) is True
    worker.join()
    assert lock.holding(2) is True
    lock.release()


def test_sleeplock_release_when_free_stays_free():
    lock = SleepLock()
    lock.release()
    assert lock.locked is False
    lock.acquire(3)
    assert lock.holding(3) is True