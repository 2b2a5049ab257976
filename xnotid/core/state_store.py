"""
Thread-safe notification store shared by the IPC and presentation threads.
"""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from xnotid.core.audit_log import AuditLog
from xnotid.domain.events import LifecycleEvent, LifecycleEventType
from xnotid.domain.models import CloseReason, Notification, Urgency

ChangeCallback = Callable[[], None]


@dataclass
class NotificationStore:
    """
    Thread-safe single source of truth for active notifications.

    'NotificationStore' owns:
    - identity assignment (monotonic ids starting at 1, reused on replace)
    - display order (newest first, insertion order never re-sorted)
    - the group index (group key -> member ids in insertion order)
    - the Do Not Disturb flag
    - the pending list of ids replaced in place since the last drain
    - the lifecycle audit log

    Concurrency Model
    -----------------
    All reads/writes are guarded by a single re-entrant lock
    (`threading.RLock`). The lock is held only for the synchronous mutation;
    the change callback is always invoked after the lock is released.

    Design Notes
    ------------
    - UI-facing accessors (`order`, `groups`, `visible_popups`, ...) return
      copies so callers may iterate them while other threads mutate the store.
    - Unknown ids are not errors: `close` and `log_action` are no-ops.
    - Audit logging is fire-and-forget (see :class:`AuditLog`).

    Attributes
    ----------
    audit_log
        Optional JSONL audit log; None disables logging entirely.
    """

    audit_log: Optional[AuditLog] = None

    _notifications: Dict[int, Notification] = field(default_factory=dict, init=False, repr=False)
    _order: List[int] = field(default_factory=list, init=False, repr=False)
    _groups: Dict[str, List[int]] = field(default_factory=dict, init=False, repr=False)
    _next_id: int = field(default=1, init=False, repr=False)
    _dnd: bool = field(default=False, init=False, repr=False)
    _replaced_ids: List[int] = field(default_factory=list, init=False, repr=False)
    _on_change: Optional[ChangeCallback] = field(default=None, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    # --- Lifecycle API ---
    def add(self, noti: Notification, replaces_id: int = 0) -> int:
        """
        Add a notification or replace an active one in place.

        Parameters
        ----------
        noti
            Decoded notification (its ``id`` is ignored).
        replaces_id
            Id of an active notification to overwrite; ``0`` for none.

        Returns
        -------
        int
            The assigned id, or `replaces_id` when it was replaced.

        Notes
        -----
        A replacement keeps its position in the display order and its original
        group (the new content's group key is ignored), and is recorded once in the replaced-ids list until the
        next :meth:`take_replaced_ids`. An unknown `replaces_id` is treated
        as a new notification.
        """
        with self._lock:
            old = self._notifications.get(replaces_id) if replaces_id > 0 else None
            if old is not None:
                # Group membership is fixed at first insert.
                stored = dataclasses.replace(noti, id=replaces_id, group=old.group)
                self._notifications[replaces_id] = stored
                if replaces_id not in self._replaced_ids:
                    self._replaced_ids.append(replaces_id)
            else:
                nid = self._next_id
                self._next_id += 1
                stored = dataclasses.replace(noti, id=nid)
                if stored.group is not None:
                    self._groups.setdefault(stored.group, []).append(nid)
                self._order.insert(0, nid)
                self._notifications[nid] = stored

            self._log(stored, LifecycleEventType.RECEIVED)
            return stored.id

    def close(self, nid: int, reason: CloseReason) -> Optional[Notification]:
        """
        Remove a notification.

        Parameters
        ----------
        nid
            Notification id.
        reason
            Why it is being removed; names the audit event.

        Returns
        -------
        Notification or None
            The removed notification, or None if `nid` was not active.
        """
        with self._lock:
            noti = self._notifications.pop(nid, None)
            if noti is None:
                return None

            self._order.remove(nid)
            if noti.group is not None:
                members = self._groups.get(noti.group)
                if members is not None:
                    if nid in members:
                        members.remove(nid)
                    if not members:
                        del self._groups[noti.group]

            self._log(noti, LifecycleEventType.for_close(reason))
            return noti

    def log_action(self, nid: int, action_key: str) -> None:
        """
        Record that the user invoked `action_key` on an active notification.

        No-op if `nid` is unknown.
        """
        with self._lock:
            noti = self._notifications.get(nid)
            if noti is not None:
                self._log(noti, LifecycleEventType.ACTION, action_key=action_key)

    def clear_all(self) -> List[Notification]:
        """
        Dismiss every active notification.

        Each removal is audited individually as ``dismissed``.

        Returns
        -------
        list of Notification
            Removed notifications, newest first.
        """
        with self._lock:
            removed: List[Notification] = []
            for nid in list(self._order):
                noti = self.close(nid, CloseReason.DISMISSED)
                if noti is not None:
                    removed.append(noti)
            return removed

    # --- Change notification ---
    def set_on_change(self, callback: Optional[ChangeCallback]) -> None:
        """
        Install the change callback.

        The presentation layer installs exactly one callback before first use.
        """
        with self._lock:
            self._on_change = callback

    def notify_change(self) -> None:
        """
        Invoke the change callback, if any.

        Callable from any thread; the callback runs synchronously on the
        calling thread and never under the store lock.
        """
        with self._lock:
            cb = self._on_change
        if cb is not None:
            cb()

    def take_replaced_ids(self) -> List[int]:
        """
        Drain ids replaced in place since the last call.

        Returns
        -------
        list of int
            Replaced ids in first-replacement order, each at most once.
        """
        with self._lock:
            ids = self._replaced_ids
            self._replaced_ids = []
            return ids

    # --- Do Not Disturb ---
    @property
    def dnd(self) -> bool:
        """Whether Do Not Disturb is on."""
        with self._lock:
            return self._dnd

    def set_dnd(self, enabled: bool) -> None:
        with self._lock:
            self._dnd = bool(enabled)

    def toggle_dnd(self) -> bool:
        """Flip Do Not Disturb and return the new state."""
        with self._lock:
            self._dnd = not self._dnd
            return self._dnd

    # --- Queries ---
    def get(self, nid: int) -> Optional[Notification]:
        with self._lock:
            return self._notifications.get(nid)

    def visible_popups(self) -> List[Notification]:
        """
        Notifications eligible for popup display, newest first.

        With DND on, only CRITICAL notifications are returned.
        """
        with self._lock:
            notis = [self._notifications[nid] for nid in self._order]
            if self._dnd:
                notis = [n for n in notis if n.urgency == Urgency.CRITICAL]
            return notis

    def all_notifications(self) -> List[Notification]:
        """
        Notifications for durable history views, newest first.

        Transient notifications are excluded.
        """
        with self._lock:
            return [
                self._notifications[nid]
                for nid in self._order
                if not self._notifications[nid].transient
            ]

    def group_members(self, group: str) -> List[int]:
        with self._lock:
            return list(self._groups.get(group, ()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._notifications)

    # -------------------------
    # UI-facing snapshot properties
    # Return copies to avoid "dict changed size during iteration"
    # -------------------------
    @property
    def order(self) -> List[int]:
        """Snapshot copy of the display order (newest first)."""
        with self._lock:
            return list(self._order)

    @property
    def groups(self) -> Dict[str, List[int]]:
        """Snapshot copy of the group index."""
        with self._lock:
            return {k: list(v) for k, v in self._groups.items()}

    @property
    def next_id(self) -> int:
        """Id the next new notification will receive."""
        with self._lock:
            return self._next_id

    def _log(
        self,
        noti: Notification,
        event: LifecycleEventType,
        action_key: Optional[str] = None,
    ) -> None:
        if self.audit_log is None:
            return
        self.audit_log.append(LifecycleEvent.from_notification(noti, event, action_key=action_key))
