from __future__ import annotations

import asyncio
from typing import Optional

from xnotid.dbus.server import NotificationsInterface
from xnotid.logger import get_logger
from xnotid.runtime.bridge import (
    ActionInvokedSignal,
    MessageChannel,
    NotificationClosedSignal,
    OutboundSignal,
)

log = get_logger()


def emit_signal(iface: NotificationsInterface, msg: OutboundSignal) -> bool:
    """
    Emit one outbound signal on the Notifications interface.

    Send failures are logged and never retried.

    Returns
    -------
    bool
        True if the signal was handed to the bus.
    """
    try:
        if isinstance(msg, ActionInvokedSignal):
            log.info("Emitting ActionInvoked: id={}, key={}", msg.id, msg.action_key)
            iface.ActionInvoked(msg.id, msg.action_key)
            return True
        if isinstance(msg, NotificationClosedSignal):
            log.info("Emitting NotificationClosed: id={}, reason={}", msg.id, int(msg.reason))
            iface.NotificationClosed(msg.id, int(msg.reason))
            return True
        log.warning("Unknown outbound signal dropped: {!r}", msg)
        return False
    except Exception as e:
        log.warning("Signal emission failed for {!r}: {!r}", msg, e)
        return False


async def pump_signals(
    iface: NotificationsInterface,
    signals: MessageChannel[OutboundSignal],
    poll_interval_s: float = 0.05,
    stop: Optional[asyncio.Event] = None,
) -> int:
    """
    Drain the signal channel into bus signals until stopped.

    The channel is polled: an empty poll sleeps `poll_interval_s` instead of
    blocking the connection, which bounds signal latency to that interval.

    Parameters
    ----------
    iface
        Exported Notifications interface used to emit signals.
    signals
        Presentation -> IPC signal channel.
    poll_interval_s
        Sleep between empty polls.
    stop
        Optional event that ends the loop.

    Returns
    -------
    int
        Number of signals emitted.
    """
    emitted = 0
    while stop is None or not stop.is_set():
        msg = signals.try_receive()
        if msg is None:
            if signals.closed:
                log.warning("Signal channel disconnected")
                break
            await asyncio.sleep(poll_interval_s)
            continue
        if emit_signal(iface, msg):
            emitted += 1
    return emitted
