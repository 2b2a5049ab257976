"""
Unit and stress tests for the IPC/presentation channels and call queue.

Stress tests validate:
- concurrent sends into an unbounded channel lose nothing
- a bounded channel under contention never exceeds its bound and never blocks
- UiCallQueue accepts calls from many threads while the owner drains it

Notes
-----
Thread stress tests are probabilistic: passing increases confidence but does not
prove the absence of races. Run repeatedly for higher confidence.
"""

from __future__ import annotations

import threading
from typing import List

import pytest

from xnotid.runtime.bridge import MessageChannel
from xnotid.ui.scheduler import UiCallQueue


@pytest.mark.stress
def test_unbounded_channel_concurrent_sends_are_all_delivered() -> None:
    """
    Every message sent from any thread must be received exactly once.
    """
    ch: MessageChannel[tuple] = MessageChannel("commands")
    n_threads, per_thread = 8, 1000
    start = threading.Barrier(n_threads)

    def producer(tid: int) -> None:
        start.wait()
        for k in range(per_thread):
            ch.send((tid, k))

    threads = [threading.Thread(target=producer, args=(i,)) for i in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    assert all(not t.is_alive() for t in threads)

    got = ch.drain(limit=n_threads * per_thread + 1)
    assert len(got) == len(set(got)) == n_threads * per_thread

    # Per-producer FIFO order is preserved.
    for tid in range(n_threads):
        seq = [k for (t, k) in got if t == tid]
        assert seq == sorted(seq)


@pytest.mark.stress
def test_bounded_channel_drops_instead_of_blocking() -> None:
    """
    Producers racing a slow consumer: accepted + dropped == sent.
    """
    ch: MessageChannel[int] = MessageChannel("signals", maxsize=50)
    n_threads, per_thread = 4, 2000
    start = threading.Barrier(n_threads + 1)
    accepted = [0] * n_threads
    received: List[int] = []
    done = threading.Event()

    def producer(tid: int) -> None:
        start.wait()
        for k in range(per_thread):
            if ch.send(k):
                accepted[tid] += 1

    def consumer() -> None:
        start.wait()
        while not done.is_set() or ch.qsize():
            received.extend(ch.drain(limit=10))
            assert ch.qsize() <= 50

    producers = [threading.Thread(target=producer, args=(i,)) for i in range(n_threads)]
    cons = threading.Thread(target=consumer)
    cons.start()
    for t in producers:
        t.start()
    for t in producers:
        t.join(timeout=10)
    done.set()
    cons.join(timeout=10)

    assert all(not t.is_alive() for t in producers + [cons])
    assert len(received) == sum(accepted)
    assert sum(accepted) <= n_threads * per_thread


@pytest.mark.stress
def test_call_queue_accepts_calls_from_many_threads() -> None:
    """
    call_soon from many threads while the owner runs pending calls.
    """
    calls = UiCallQueue()
    counter = {"n": 0}
    n_threads, per_thread = 6, 500
    start = threading.Barrier(n_threads)

    def bump() -> None:
        counter["n"] += 1

    def producer() -> None:
        start.wait()
        for _ in range(per_thread):
            calls.call_soon(bump)

    threads = [threading.Thread(target=producer) for _ in range(n_threads)]
    for t in threads:
        t.start()

    ran = 0
    while any(t.is_alive() for t in threads):
        ran += calls.run_pending()
    for t in threads:
        t.join(timeout=10)
    ran += calls.run_pending(limit=n_threads * per_thread)

    assert ran == counter["n"] == n_threads * per_thread
