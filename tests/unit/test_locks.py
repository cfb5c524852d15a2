"""Unit tests for the per-filename lock."""

from __future__ import annotations

import threading
import time

from doc_rag.ingestion.locks import KeyedLock


def test_same_key_is_serialized() -> None:
    locks = KeyedLock()
    active = 0
    peak = 0
    guard = threading.Lock()

    def worker() -> None:
        nonlocal active, peak
        with locks.hold("report.pdf"):
            with guard:
                active += 1
                peak = max(peak, active)
            time.sleep(0.01)
            with guard:
                active -= 1

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert peak == 1
    assert len(locks) == 0


def test_different_keys_do_not_block() -> None:
    locks = KeyedLock()
    entered = threading.Event()

    def other() -> None:
        with locks.hold("b.txt"):
            entered.set()

    with locks.hold("a.txt"):
        thread = threading.Thread(target=other)
        thread.start()
        assert entered.wait(timeout=2)
        thread.join()


def test_lock_is_reentrant_and_released() -> None:
    locks = KeyedLock()
    with locks.hold("a.txt"):
        with locks.hold("a.txt"):
            assert len(locks) == 1
    assert len(locks) == 0
