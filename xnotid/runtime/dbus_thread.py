from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from dbus_fast import BusType, NameFlag, RequestNameReply
from dbus_fast.aio import MessageBus

from xnotid.dbus.server import (
    CONTROL_BUS_NAME,
    CONTROL_PATH,
    NOTIFICATIONS_BUS_NAME,
    NOTIFICATIONS_PATH,
    ControlInterface,
    NotificationServer,
    NotificationsInterface,
)
from xnotid.dbus.signal_pump import pump_signals
from xnotid.logger import get_logger
from xnotid.runtime.bridge import Bridge

log = get_logger()

FatalHandler = Callable[[BaseException], None]


class BusNameError(RuntimeError):
    """A well-known bus name could not be acquired as primary owner."""


@dataclass(frozen=True)
class DbusServiceConfig:
    """
    Configuration for the IPC context.

    Parameters
    ----------
    poll_interval_s
        Sleep between empty polls of the outbound signal channel.
    bus_type
        Bus to connect to (always the per-session bus in production).
    """

    poll_interval_s: float = 0.05
    bus_type: BusType = BusType.SESSION


async def acquire_name(bus: MessageBus, name: str) -> None:
    """
    Request `name` without queueing behind another owner.

    Raises
    ------
    BusNameError
        If the bus did not make us the primary owner.
    """
    reply = await bus.request_name(name, NameFlag.DO_NOT_QUEUE)
    if reply not in (RequestNameReply.PRIMARY_OWNER, RequestNameReply.ALREADY_OWNER):
        raise BusNameError(f"could not acquire bus name {name}: {reply.name}")


class DbusServiceThread:
    """
    IPC execution context: an asyncio event loop on a dedicated thread.

    Responsibilities
    ----------------
    - Connect to the session bus and export the Notifications and Control
      interfaces.
    - Acquire both well-known bus names.
    - Run the outbound signal pump until stopped.

    Failure Policy
    --------------
    Connection or bus-name failures are fatal: they are logged and reported
    through `on_fatal`, which is expected to terminate the process. An
    unexpected disconnect after startup is reported the same way.

    Parameters
    ----------
    cfg
        IPC configuration.
    server
        Protocol logic bound to the shared store.
    bridge
        Command and signal channels shared with the presentation context.
    on_fatal
        Called on the IPC thread with the fatal exception.
    """

    def __init__(
        self,
        cfg: DbusServiceConfig,
        server: NotificationServer,
        bridge: Bridge,
        on_fatal: FatalHandler,
    ):
        self._cfg = cfg
        self._server = server
        self._bridge = bridge
        self._on_fatal = on_fatal
        self._thread = threading.Thread(target=self._run, name="dbus-service", daemon=True)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_evt: Optional[asyncio.Event] = None
        self._stop_requested = threading.Event()
        self.ready = threading.Event()

    def start(self) -> None:
        """
        Start the IPC thread if not already running.
        """
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        """
        Ask the IPC loop to stop and disconnect from the bus.
        """
        self._stop_requested.set()
        loop, evt = self._loop, self._stop_evt
        if loop is not None and evt is not None and not loop.is_closed():
            try:
                loop.call_soon_threadsafe(evt.set)
            except RuntimeError:
                # Loop closed between the check and the call.
                pass

    def join(self, timeout: float | None = 2.0) -> None:
        """
        Join the IPC thread.

        Parameters
        ----------
        timeout
            Maximum time to wait for the thread to exit.
        """
        self._thread.join(timeout=timeout)

    def _run(self) -> None:
        try:
            asyncio.run(self._serve())
        except Exception as e:
            log.critical("Failed to run D-Bus server: {!r}", e)
            self._on_fatal(e)

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._stop_evt = asyncio.Event()
        if self._stop_requested.is_set():
            return

        bus = await MessageBus(bus_type=self._cfg.bus_type).connect()
        try:
            notifications = NotificationsInterface(self._server)
            control = ControlInterface(self._bridge.commands)
            bus.export(NOTIFICATIONS_PATH, notifications)
            bus.export(CONTROL_PATH, control)

            await acquire_name(bus, NOTIFICATIONS_BUS_NAME)
            await acquire_name(bus, CONTROL_BUS_NAME)
            log.info("D-Bus server started: {} + {}", NOTIFICATIONS_BUS_NAME, CONTROL_BUS_NAME)
            self.ready.set()

            pump = asyncio.create_task(
                pump_signals(
                    notifications,
                    self._bridge.signals,
                    poll_interval_s=self._cfg.poll_interval_s,
                    stop=self._stop_evt,
                )
            )
            stopped = asyncio.create_task(self._stop_evt.wait())
            disconnected = asyncio.create_task(bus.wait_for_disconnect())

            done, _ = await asyncio.wait(
                {pump, stopped, disconnected}, return_when=asyncio.FIRST_COMPLETED
            )
            self._stop_evt.set()
            await pump
            stopped.cancel()

            if disconnected in done and not self._stop_requested.is_set():
                raise ConnectionError("D-Bus connection lost")
            disconnected.cancel()
        finally:
            bus.disconnect()
