"""
Tests for the per-key lock that serializes a user's day
"""
import threading
import time

from app.utils.locks import KeyedLock


def test_same_key_is_mutually_exclusive():
    locks = KeyedLock()
    inside = 0
    peak = 0
    guard = threading.Lock()

    def worker():
        nonlocal inside, peak
        with locks.hold((101, "2026-03-10")):
            with guard:
                inside += 1
                peak = max(peak, inside)
            time.sleep(0.01)
            with guard:
                inside -= 1

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert peak == 1
    assert len(locks) == 0


def test_different_keys_do_not_block_each_other():
    locks = KeyedLock()
    entered = threading.Event()
    release = threading.Event()

    def holder():
        with locks.hold(1):
            entered.set()
            release.wait(timeout=2)

    t = threading.Thread(target=holder)
    t.start()
    assert entered.wait(timeout=2)

    acquired = threading.Event()

    def other():
        with locks.hold(2):
            acquired.set()

    t2 = threading.Thread(target=other)
    t2.start()
    assert acquired.wait(timeout=2)

    release.set()
    t.join()
    t2.join()
    assert len(locks) == 0


def test_lock_released_on_error():
    locks = KeyedLock()
    try:
        with locks.hold("k"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    with locks.hold("k"):
        assert len(locks) == 1
    assert len(locks) == 0
