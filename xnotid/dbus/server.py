"""
org.freedesktop.Notifications protocol server.

`NotificationServer` holds the protocol logic (decode, store, schedule a UI
refresh) and is independent of any bus connection. `NotificationsInterface`
and `ControlInterface` are the dbus-fast service objects exported on the
session bus; they only translate wire calls into server calls.

Method names, argument order and signatures below are part of the protocol
contract.
"""

# dbus-fast reads the D-Bus signatures from the annotations at class creation,
# so this module keeps eager (non-postponed) annotations.

from importlib.metadata import PackageNotFoundError, version
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from dbus_fast.service import ServiceInterface, method, signal

from xnotid.core.decoder import build_notification
from xnotid.core.state_store import NotificationStore
from xnotid.domain.models import CloseReason, Notification
from xnotid.logger import get_logger
from xnotid.runtime.bridge import MessageChannel, UiCommand

log = get_logger()

NOTIFICATIONS_BUS_NAME = "org.freedesktop.Notifications"
NOTIFICATIONS_PATH = "/org/freedesktop/Notifications"
NOTIFICATIONS_INTERFACE = "org.freedesktop.Notifications"

CONTROL_BUS_NAME = "org.xnotid.Control"
CONTROL_PATH = "/org/xnotid/Control"
CONTROL_INTERFACE = "org.xnotid.Control"

SERVER_NAME = "xnotid"
SERVER_VENDOR = "xnotid"
PROTOCOL_VERSION = "1.2"

CAPABILITIES: Tuple[str, ...] = (
    "body",
    "body-markup",
    "body-images",
    "actions",
    "persistence",
    "icon-static",
)

Scheduler = Callable[[Callable[[], None]], None]


def package_version() -> str:
    try:
        return version("xnotid")
    except PackageNotFoundError:
        return "0.0.0"


class NotificationServer:
    """
    Protocol logic behind the Notifications interface.

    Parameters
    ----------
    store
        Shared notification store.
    schedule
        Presentation-context "call soon" primitive. `notify` uses it to run
        the store's change notification on the presentation thread instead of
        the IPC thread.
    """

    def __init__(self, store: NotificationStore, schedule: Scheduler):
        self._store = store
        self._schedule = schedule
        self._version = package_version()

    @property
    def store(self) -> NotificationStore:
        return self._store

    def get_capabilities(self) -> List[str]:
        return list(CAPABILITIES)

    def get_server_information(self) -> Tuple[str, str, str, str]:
        return (SERVER_NAME, SERVER_VENDOR, self._version, PROTOCOL_VERSION)

    def notify(
        self,
        app_name: str,
        replaces_id: int,
        app_icon: str,
        summary: str,
        body: str,
        actions: Sequence[str],
        hints: Dict[str, Any],
        expire_timeout: int,
    ) -> int:
        """
        Handle a Notify call.

        Returns
        -------
        int
            Id assigned to (or reused by) the notification. Never fails for a
            syntactically valid call.
        """
        log.info("Notify: app={}, summary={}, replaces={}", app_name, summary, replaces_id)
        noti = build_notification(
            app_name=app_name,
            app_icon=app_icon,
            summary=summary,
            body=body,
            actions=actions,
            hints=hints,
            expire_timeout=expire_timeout,
        )
        nid = self._store.add(noti, replaces_id)
        self._schedule(self._store.notify_change)
        return nid

    def close_notification(self, nid: int) -> Optional[Notification]:
        """
        Handle a CloseNotification call.

        Returns
        -------
        Notification or None
            The removed notification; None if `nid` was not active.
        """
        log.info("CloseNotification: id={}", nid)
        removed = self._store.close(nid, CloseReason.CLOSED)
        self._store.notify_change()
        return removed


class NotificationsInterface(ServiceInterface):
    """D-Bus face of :class:`NotificationServer`."""

    def __init__(self, server: NotificationServer):
        super().__init__(NOTIFICATIONS_INTERFACE)
        self._server = server

    @method()
    def GetCapabilities(self) -> "as":
        return self._server.get_capabilities()

    @method()
    def Notify(
        self,
        app_name: "s",
        replaces_id: "u",
        app_icon: "s",
        summary: "s",
        body: "s",
        actions: "as",
        hints: "a{sv}",
        expire_timeout: "i",
    ) -> "u":
        return self._server.notify(
            app_name, replaces_id, app_icon, summary, body, actions, hints, expire_timeout
        )

    @method()
    def CloseNotification(self, id: "u"):
        removed = self._server.close_notification(id)
        if removed is not None:
            self.NotificationClosed(id, int(CloseReason.CLOSED))

    @method()
    def GetServerInformation(self) -> "ssss":
        return list(self._server.get_server_information())

    @signal()
    def NotificationClosed(self, id, reason) -> "uu":
        return [id, reason]

    @signal()
    def ActionInvoked(self, id, action_key) -> "us":
        return [id, action_key]


class ControlInterface(ServiceInterface):
    """
    Daemon-specific control surface.

    Holds no state: commands are forwarded unchanged onto the command channel.
    """

    def __init__(self, commands: MessageChannel[UiCommand]):
        super().__init__(CONTROL_INTERFACE)
        self._commands = commands

    @method()
    def ToggleCenter(self):
        log.info("ToggleCenter requested via D-Bus")
        self._commands.send(UiCommand.TOGGLE_CENTER)
