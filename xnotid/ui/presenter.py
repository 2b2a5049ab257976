from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Iterable, List, Protocol, Set, Tuple

from xnotid.config.yaml_config import DaemonConfig
from xnotid.core.cards import card_response_key
from xnotid.core.state_store import NotificationStore
from xnotid.domain.models import CloseReason, Notification
from xnotid.logger import get_logger
from xnotid.runtime.bridge import (
    ActionInvokedSignal,
    Bridge,
    NotificationClosedSignal,
    UiCommand,
)

log = get_logger()


class TimerService(Protocol):
    """
    Per-notification single-shot timers owned by the presentation context.

    Methods
    -------
    start(nid, seconds, callback)
        (Re)start the timer for `nid`; `callback` runs on the presentation
        thread when it fires.
    cancel(nid)
        Stop the timer for `nid`; returns True if one was pending.
    """

    def start(self, nid: int, seconds: int, callback: Callable[[], None]) -> None:
        ...

    def cancel(self, nid: int) -> bool:
        ...


@dataclass(frozen=True)
class PresenterView:
    """
    Snapshot the renderer draws from.

    Parameters
    ----------
    popups
        Popups to show, newest first, capped at ``popup.max_visible``.
    queued_popups
        Number of shown popups beyond the cap.
    center
        Non-transient notifications for the notification center.
    group_counts
        Group key -> active member count, for collapsed display.
    rebuilt_ids
        Ids replaced in place since the previous refresh; their widgets must
        be rebuilt rather than updated.
    dnd
        Do Not Disturb state.
    center_visible
        Whether the center should be shown.
    """

    popups: Tuple[Notification, ...]
    queued_popups: int
    center: Tuple[Notification, ...]
    group_counts: Dict[str, int]
    rebuilt_ids: Tuple[int, ...]
    dnd: bool
    center_visible: bool


class NotificationPresenter:
    """
    Presentation-side collaborator of the store, independent of any widget
    toolkit.

    Responsibilities
    ----------------
    - Track which notifications currently have a popup.
    - Own auto-dismiss timers keyed by notification id (the store has no
      notion of time).
    - Turn user interactions (dismiss, action, card answer, clear all) into
      store mutations plus outbound signals on the bridge.
    - Handle commands arriving from the IPC context.

    Concurrency Model
    -----------------
    All methods run on the presentation thread. Cross-context effects go
    through the store (locked) and the bridge channels only.

    Parameters
    ----------
    store
        Shared notification store.
    bridge
        Command/signal channels.
    cfg
        Daemon configuration (timeouts, popup cap, behaviour switches).
    timers
        Timer implementation of the hosting event loop.
    """

    def __init__(
        self,
        store: NotificationStore,
        bridge: Bridge,
        cfg: DaemonConfig,
        timers: TimerService,
    ):
        self._store = store
        self._bridge = bridge
        self._cfg = cfg
        self._timers = timers
        self._popup_ids: Set[int] = set()
        self._paused: Set[int] = set()
        self.center_visible = False

    # --- Timeouts ---
    def effective_timeout(self, noti: Notification) -> int:
        """
        Seconds until `noti` auto-expires; 0 means never.

        - ``timeout == 0``: persistent
        - ``timeout < 0``: configured default for its urgency
        - ``timeout > 0``: requested milliseconds, at least one second
        """
        if noti.timeout == 0:
            return 0
        if noti.timeout < 0:
            return self._cfg.timeout_for_urgency(noti.urgency)
        return max(1, noti.timeout // 1000)

    def _schedule_expiry(self, noti: Notification) -> None:
        seconds = self.effective_timeout(noti)
        if seconds > 0 and not noti.acknowledge_to_dismiss:
            self._timers.start(noti.id, seconds, partial(self.expire, noti.id))

    def pause_timeout(self, nid: int) -> None:
        """Stop the expiry timer while the pointer hovers a popup."""
        if not self._cfg.behavior.hover_pause:
            return
        if self._timers.cancel(nid):
            self._paused.add(nid)

    def resume_timeout(self, nid: int) -> None:
        """Restart a paused expiry timer with its full timeout."""
        if nid not in self._paused:
            return
        self._paused.discard(nid)
        noti = self._store.get(nid)
        if noti is not None and nid in self._popup_ids:
            self._schedule_expiry(noti)

    # --- Refresh ---
    def refresh(self) -> PresenterView:
        """
        Reconcile popup state with the store and return a view snapshot.

        Drains the store's replaced ids exactly once per call.
        """
        replaced = self._store.take_replaced_ids()
        for nid in replaced:
            self._forget(nid)

        active = set(self._store.order)
        for nid in list(self._popup_ids):
            if nid not in active:
                self._forget(nid)

        for noti in self._store.visible_popups():
            if noti.id not in self._popup_ids:
                self._popup_ids.add(noti.id)
                self._schedule_expiry(noti)

        return self._view(tuple(replaced))

    def _forget(self, nid: int) -> None:
        self._timers.cancel(nid)
        self._popup_ids.discard(nid)
        self._paused.discard(nid)

    def _view(self, rebuilt: Tuple[int, ...]) -> PresenterView:
        shown: List[Notification] = []
        for nid in self._store.order:
            if nid in self._popup_ids:
                noti = self._store.get(nid)
                if noti is not None:
                    shown.append(noti)
        cap = self._cfg.popup.max_visible
        return PresenterView(
            popups=tuple(shown[:cap]),
            queued_popups=max(0, len(shown) - cap),
            center=tuple(self._store.all_notifications()),
            group_counts={k: len(v) for k, v in self._store.groups.items()},
            rebuilt_ids=rebuilt,
            dnd=self._store.dnd,
            center_visible=self.center_visible,
        )

    @property
    def popup_ids(self) -> Set[int]:
        return set(self._popup_ids)

    # --- User interactions ---
    def _close(self, nid: int, reason: CloseReason) -> bool:
        self._forget(nid)
        removed = self._store.close(nid, reason)
        if removed is None:
            return False
        self._bridge.signals.send(NotificationClosedSignal(id=nid, reason=reason))
        self._store.notify_change()
        return True

    def expire(self, nid: int) -> bool:
        """Timer callback: close `nid` as expired."""
        return self._close(nid, CloseReason.EXPIRED)

    def dismiss(self, nid: int) -> bool:
        """Explicit dismissal (close button, center removal)."""
        return self._close(nid, CloseReason.DISMISSED)

    def click(self, nid: int) -> bool:
        """
        Body click: invokes the ``default`` action when present, otherwise
        dismisses unless disabled or the notification requires an explicit
        action.
        """
        noti = self._store.get(nid)
        if noti is None:
            return False
        if any(a.key == "default" for a in noti.actions):
            return self.invoke_action(nid, "default")
        if not self._cfg.behavior.click_to_dismiss:
            return False
        if noti.acknowledge_to_dismiss:
            return False
        return self.dismiss(nid)

    def invoke_action(self, nid: int, action_key: str) -> bool:
        """
        User activated an action: signal it, audit it, and dismiss.

        Returns
        -------
        bool
            False if `nid` is no longer active.
        """
        if self._store.get(nid) is None:
            return False
        log.info("Action invoked: id={} key={}", nid, action_key)
        self._bridge.signals.send(ActionInvokedSignal(id=nid, action_key=action_key))
        self._store.log_action(nid, action_key)
        return self._close(nid, CloseReason.DISMISSED)

    def answer_card(self, nid: int, selected_ids: Iterable[str] = (), other_text: str = "") -> bool:
        """Submit an answer to the card carried by `nid`."""
        noti = self._store.get(nid)
        if noti is None or noti.card is None:
            return False
        return self.invoke_action(nid, card_response_key(noti.card, selected_ids, other_text))

    def clear_all(self) -> int:
        """
        Dismiss everything, emitting one NotificationClosed per notification.

        Returns
        -------
        int
            Number of notifications removed.
        """
        for nid in list(self._popup_ids):
            self._forget(nid)
        removed = self._store.clear_all()
        for noti in removed:
            self._bridge.signals.send(NotificationClosedSignal(id=noti.id, reason=CloseReason.DISMISSED))
        self._store.notify_change()
        return len(removed)

    def toggle_dnd(self) -> bool:
        """Flip Do Not Disturb (kept off when the feature is disabled)."""
        if not self._cfg.behavior.dnd_enabled:
            self._store.set_dnd(False)
            return False
        state = self._store.toggle_dnd()
        log.info("DND toggled: {}", state)
        self._store.notify_change()
        return state

    def toggle_center(self) -> bool:
        self.center_visible = not self.center_visible
        self._store.notify_change()
        return self.center_visible

    # --- Commands from the IPC context ---
    def handle_command(self, cmd: UiCommand) -> None:
        if cmd is UiCommand.TOGGLE_CENTER:
            self.toggle_center()
        else:
            log.warning("Unknown UI command: {!r}", cmd)
