from __future__ import annotations

import threading
from functools import partial
from typing import Callable, Dict, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from xnotid.runtime.bridge import Bridge
from xnotid.ui.presenter import NotificationPresenter, PresenterView
from xnotid.ui.scheduler import UiCallQueue


class QtTimerService:
    """
    TimerService backed by single-shot QTimers on the presentation thread.
    """

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent
        self._timers: Dict[int, QTimer] = {}

    def start(self, nid: int, seconds: int, callback: Callable[[], None]) -> None:
        self.cancel(nid)
        t = QTimer(self._parent)
        t.setSingleShot(True)
        t.setInterval(int(seconds) * 1000)
        t.timeout.connect(partial(self._fire, nid, callback))
        self._timers[nid] = t
        t.start()

    def cancel(self, nid: int) -> bool:
        t = self._timers.pop(nid, None)
        if t is None:
            return False
        t.stop()
        t.deleteLater()
        return True

    def _fire(self, nid: int, callback: Callable[[], None]) -> None:
        t = self._timers.pop(nid, None)
        if t is not None:
            t.deleteLater()
        callback()


class DaemonHost(QObject):
    """
    Timer-polled presentation loop.

    Each tick (``ui.poll_interval_ms``):
    1) runs callables scheduled onto the presentation thread
    2) drains the command channel into the presenter
    3) if the store reported a change since the last tick, refreshes the
       presenter and emits `view_changed`

    `mark_dirty` is the store's change callback. It only sets a flag, so it is
    safe to call from the IPC thread.
    """

    view_changed = Signal(object)  # PresenterView

    def __init__(
        self,
        presenter: NotificationPresenter,
        bridge: Bridge,
        calls: UiCallQueue,
        interval_ms: int = 50,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._presenter = presenter
        self._bridge = bridge
        self._calls = calls
        self._dirty = threading.Event()
        self.last_view: Optional[PresenterView] = None

        self.timer = QTimer(self)
        self.timer.setInterval(interval_ms)
        self.timer.timeout.connect(self.tick)

    @property
    def presenter(self) -> NotificationPresenter:
        return self._presenter

    def mark_dirty(self) -> None:
        self._dirty.set()

    def start(self) -> None:
        self.mark_dirty()
        self.timer.start()

    def stop(self) -> None:
        self.timer.stop()

    def tick(self) -> None:
        self._calls.run_pending()

        for cmd in self._bridge.commands.drain():
            self._presenter.handle_command(cmd)

        if self._dirty.is_set():
            self._dirty.clear()
            self.last_view = self._presenter.refresh()
            self.view_changed.emit(self.last_view)
