"""
Unit tests for xnotid.ui.scheduler.UiCallQueue.
"""

from __future__ import annotations

from typing import List

from xnotid.ui.scheduler import UiCallQueue


def test_calls_run_in_order_on_run_pending() -> None:
    """Nothing runs until run_pending; then calls run FIFO."""
    q = UiCallQueue()
    seen: List[int] = []
    q.call_soon(lambda: seen.append(1))
    q.call_soon(lambda: seen.append(2))

    assert seen == []
    assert q.run_pending() == 2
    assert seen == [1, 2]
    assert q.run_pending() == 0


def test_failing_call_does_not_stop_others() -> None:
    """An exception in one callable is logged and the rest still run."""
    q = UiCallQueue()
    seen: List[str] = []

    def boom() -> None:
        raise RuntimeError("boom")

    q.call_soon(boom)
    q.call_soon(lambda: seen.append("ok"))

    assert q.run_pending() == 2
    assert seen == ["ok"]


def test_limit_defers_remaining_calls() -> None:
    """Calls beyond the limit wait for the next tick."""
    q = UiCallQueue()
    seen: List[int] = []
    for i in range(5):
        q.call_soon(lambda i=i: seen.append(i))

    assert q.run_pending(limit=3) == 3
    assert seen == [0, 1, 2]
    assert q.run_pending() == 2
    assert seen == [0, 1, 2, 3, 4]
