from __future__ import annotations

import queue
from typing import Callable

from xnotid.logger import get_logger

log = get_logger()


class UiCallQueue:
    """
    "Call soon" primitive of the presentation context.

    Any thread may hand a callable to :meth:`call_soon`; the presentation
    loop runs queued callables on its own thread via :meth:`run_pending`
    (called from the UI timer tick). This is how the IPC thread schedules
    work onto the presentation thread without calling into it directly.
    """

    def __init__(self) -> None:
        self._q: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()

    def call_soon(self, fn: Callable[[], None]) -> None:
        self._q.put(fn)

    def run_pending(self, limit: int = 1000) -> int:
        """
        Run up to `limit` queued callables in FIFO order.

        A failing callable is logged and does not stop the rest.

        Returns
        -------
        int
            Number of callables run.
        """
        ran = 0
        while ran < limit:
            try:
                fn = self._q.get_nowait()
            except queue.Empty:
                break
            ran += 1
            try:
                fn()
            except Exception:
                log.exception("scheduled UI call failed")
        return ran
