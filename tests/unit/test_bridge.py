"""
Unit tests for xnotid.runtime.bridge.

These tests validate:
- FIFO delivery and non-blocking receive
- drop policy on a full bounded channel and after close
- Bridge.create queue bounds
"""

from __future__ import annotations

from xnotid.domain.models import CloseReason
from xnotid.runtime.bridge import (
    ActionInvokedSignal,
    DEFAULT_SIGNAL_QUEUE_SIZE,
    Bridge,
    MessageChannel,
    NotificationClosedSignal,
    UiCommand,
)


def test_fifo_and_empty_receive() -> None:
    """Messages come out in send order; an empty channel yields None."""
    ch: MessageChannel[int] = MessageChannel("t")
    for i in range(3):
        assert ch.send(i) is True

    assert ch.try_receive() == 0
    assert ch.drain() == [1, 2]
    assert ch.try_receive() is None


def test_drain_respects_limit() -> None:
    """drain never returns more than `limit` messages."""
    ch: MessageChannel[int] = MessageChannel("t")
    for i in range(10):
        ch.send(i)

    assert ch.drain(limit=4) == [0, 1, 2, 3]
    assert ch.qsize() == 6


def test_bounded_channel_drops_when_full() -> None:
    """A full bounded channel drops new messages instead of blocking."""
    ch: MessageChannel[int] = MessageChannel("t", maxsize=2)

    assert ch.send(1) is True
    assert ch.send(2) is True
    assert ch.send(3) is False
    assert ch.drain() == [1, 2]


def test_closed_channel_drops_but_drains_pending() -> None:
    """After close, sends are dropped; already queued messages remain readable."""
    ch: MessageChannel[str] = MessageChannel("t")
    ch.send("before")
    ch.close()

    assert ch.closed is True
    assert ch.send("after") is False
    assert ch.drain() == ["before"]


def test_bridge_create_bounds() -> None:
    """Commands are unbounded; signals are bounded by the requested size."""
    bridge = Bridge.create(signal_queue_size=1)

    for _ in range(50):
        assert bridge.commands.send(UiCommand.TOGGLE_CENTER) is True

    assert bridge.signals.send(ActionInvokedSignal(id=1, action_key="ok")) is True
    assert bridge.signals.send(NotificationClosedSignal(id=1, reason=CloseReason.DISMISSED)) is False


def test_bridge_close_closes_both() -> None:
    """Closing the bridge marks both channels disconnected."""
    bridge = Bridge.create()
    bridge.close()
    assert bridge.commands.closed and bridge.signals.closed


def test_bridge_create_default_signal_bound() -> None:
    """Without an explicit size the signal channel uses the shared default bound."""
    bridge = Bridge.create()

    for i in range(DEFAULT_SIGNAL_QUEUE_SIZE):
        assert bridge.signals.send(ActionInvokedSignal(id=i, action_key="k")) is True
    assert bridge.signals.send(ActionInvokedSignal(id=-1, action_key="k")) is False
