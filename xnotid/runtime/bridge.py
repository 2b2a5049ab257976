from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from queue import Empty, Full, Queue
from typing import Generic, List, Optional, TypeVar, Union

from xnotid.domain.models import CloseReason
from xnotid.logger import get_logger

log = get_logger()

T = TypeVar("T")

DEFAULT_SIGNAL_QUEUE_SIZE = 1000


class UiCommand(str, Enum):
    """
    Commands carried from the IPC context to the presentation context.

    Members
    -------
    TOGGLE_CENTER : str
        Show or hide the notification center.
    """

    TOGGLE_CENTER = "TOGGLE_CENTER"


@dataclass(frozen=True)
class ActionInvokedSignal:
    """Request to emit ``ActionInvoked(id, action_key)`` on the bus."""

    id: int
    action_key: str


@dataclass(frozen=True)
class NotificationClosedSignal:
    """Request to emit ``NotificationClosed(id, reason)`` on the bus."""

    id: int
    reason: CloseReason


OutboundSignal = Union[ActionInvokedSignal, NotificationClosedSignal]


class MessageChannel(Generic[T]):
    """
    One-directional FIFO channel between the IPC and presentation contexts.

    The channel wraps a thread-safe :class:`queue.Queue`:
    - Producers call :meth:`send` (never blocks, never raises).
    - Consumers poll with :meth:`try_receive` or :meth:`drain` on their own
      schedule; an empty channel just means "nothing to do this tick".

    Delivery Policy
    ---------------
    - ``maxsize=0`` makes the channel unbounded.
    - On a bounded channel a send to a full queue is dropped and logged.
    - After :meth:`close` (peer gone) sends are dropped and logged; pending
      messages can still be drained.

    Parameters
    ----------
    name
        Channel name used in log lines.
    maxsize
        Queue bound; 0 for unbounded.
    """

    def __init__(self, name: str, maxsize: int = 0):
        self.name = name
        self._q: "Queue[T]" = Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, msg: T) -> bool:
        """
        Enqueue a message without blocking.

        Returns
        -------
        bool
            False if the message was dropped.
        """
        if self._closed:
            log.warning("[{}] peer disconnected, dropping {!r}", self.name, msg)
            return False
        try:
            self._q.put_nowait(msg)
            return True
        except Full:
            log.warning("[{}] queue full, dropping {!r}", self.name, msg)
            return False

    def try_receive(self) -> Optional[T]:
        """Return the next message, or None if the channel is empty."""
        try:
            return self._q.get_nowait()
        except Empty:
            return None

    def drain(self, limit: int = 1000) -> List[T]:
        """
        Receive up to `limit` pending messages without blocking.

        Returns
        -------
        list
            Messages in FIFO order.
        """
        out: List[T] = []
        for _ in range(limit):
            msg = self.try_receive()
            if msg is None:
                break
            out.append(msg)
        return out

    def close(self) -> None:
        """Mark the consuming side as gone."""
        self._closed = True

    def qsize(self) -> int:
        return self._q.qsize()


@dataclass
class Bridge:
    """
    The two queues connecting the IPC and presentation contexts.

    Attributes
    ----------
    commands
        IPC -> presentation (e.g. ToggleCenter). Unbounded.
    signals
        Presentation -> IPC outbound signal requests. Bounded, best-effort.
    """

    commands: MessageChannel[UiCommand]
    signals: MessageChannel[OutboundSignal]

    @classmethod
    def create(cls, signal_queue_size: int = DEFAULT_SIGNAL_QUEUE_SIZE) -> "Bridge":
        return cls(
            commands=MessageChannel("commands"),
            signals=MessageChannel("signals", maxsize=signal_queue_size),
        )

    def close(self) -> None:
        self.commands.close()
        self.signals.close()
