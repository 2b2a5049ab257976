"""
Notification lifecycle event models.

A `LifecycleEvent` represents *what happened* to a notification at a specific
time (received, closed for some reason, action invoked). The store turns each
lifecycle transition into one event and appends it to the JSONL audit log.

Only the ``received`` event carries the full notification content; every other
event carries identity, app name, summary, group and (for actions) the key.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from xnotid.domain.models import CloseReason, Notification


class LifecycleEventType(str, Enum):
    """
    Audit-log event name.

    Members
    -------
    RECEIVED : str
        Notification accepted by the store (new or replacing).
    EXPIRED, DISMISSED, CLOSED, UNDEFINED : str
        Notification removed, named after its close reason.
    ACTION : str
        User invoked one of the notification's actions.
    """

    RECEIVED = "received"
    EXPIRED = "expired"
    DISMISSED = "dismissed"
    CLOSED = "closed"
    UNDEFINED = "undefined"
    ACTION = "action"

    @classmethod
    def for_close(cls, reason: CloseReason) -> "LifecycleEventType":
        """Event type recorded when a notification is closed for `reason`."""
        return cls(reason.event_name)


@dataclass(frozen=True)
class LifecycleEvent:
    """
    One audit-log record.

    Parameters
    ----------
    correlation_id
        Correlation id of the notification the event belongs to.
    timestamp
        When the event was recorded (UTC).
    event
        Lifecycle event type.
    notification_id
        Store id of the notification.
    app_name, summary, group
        Always recorded.
    app_icon, body, created_at, urgency, desktop_entry, hints
        Recorded on ``received`` only.
    action_key
        Recorded on ``action`` only.
    """

    correlation_id: str
    timestamp: datetime
    event: LifecycleEventType
    notification_id: Optional[int] = None
    app_name: Optional[str] = None
    app_icon: Optional[str] = None
    summary: Optional[str] = None
    body: Optional[str] = None
    created_at: Optional[datetime] = None
    urgency: Optional[str] = None
    desktop_entry: Optional[str] = None
    hints: Optional[Dict[str, str]] = None
    action_key: Optional[str] = None
    group: Optional[str] = None

    @classmethod
    def from_notification(
        cls,
        noti: Notification,
        event: LifecycleEventType,
        action_key: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "LifecycleEvent":
        """
        Build the audit record for `event` on `noti`.

        Parameters
        ----------
        noti
            Notification the event refers to (with its store id).
        event
            Lifecycle event type.
        action_key
            Invoked action key, for ``action`` events.
        now
            Optional timestamp override; defaults to current UTC time.

        Returns
        -------
        LifecycleEvent
            Record with full content only for ``received``.
        """
        ts = now or datetime.now(timezone.utc)
        full = event is LifecycleEventType.RECEIVED
        return cls(
            correlation_id=noti.correlation_id,
            timestamp=ts,
            event=event,
            notification_id=noti.id,
            app_name=noti.app_name,
            app_icon=noti.app_icon if full else None,
            summary=noti.summary,
            body=noti.body if full else None,
            created_at=noti.created_at if full else None,
            urgency=noti.urgency.label if full else None,
            desktop_entry=noti.desktop_entry if full else None,
            hints=dict(noti.hints) if full else None,
            action_key=action_key,
            group=noti.group,
        )

    def to_json_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON-ready dict, omitting absent fields.

        Returns
        -------
        dict
            Mapping with ISO-8601 timestamps and string event name.
        """
        raw: Dict[str, Any] = {
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
            "event": self.event.value,
            "notification_id": self.notification_id,
            "app_name": self.app_name,
            "app_icon": self.app_icon,
            "summary": self.summary,
            "body": self.body,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "urgency": self.urgency,
            "desktop_entry": self.desktop_entry,
            "hints": self.hints,
            "action_key": self.action_key,
            "group": self.group,
        }
        return {k: v for k, v in raw.items() if v is not None}
