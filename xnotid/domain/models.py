"""
Domain models and enums.

This module defines the core domain-level types used across the daemon:
- Urgency levels and close reasons defined by the notification protocol
- Action buttons parsed from the flat protocol action list
- Image payload variants (raw pixels, filesystem path, themed icon name)
- Structured "card" payloads parsed out of the notification body
- Notification, the entity owned by the store once it has been added

These are designed as immutable (frozen) dataclasses so that a notification
can be shared between the IPC thread and the presentation thread without
copying. The store assigns identity with :func:`dataclasses.replace`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Dict, Optional, Tuple, Union


class Urgency(IntEnum):
    """
    Protocol urgency level, carried as a byte in the ``urgency`` hint.

    Members
    -------
    LOW : int
        Background information; shortest default timeout.
    NORMAL : int
        Regular notifications.
    CRITICAL : int
        Never suppressed by Do Not Disturb; persistent by default.
    """

    LOW = 0
    NORMAL = 1
    CRITICAL = 2

    @classmethod
    def from_byte(cls, value: int) -> "Urgency":
        """
        Map a raw urgency byte to an Urgency.

        Any value other than 0 or 2 maps to NORMAL.
        """
        if value == 0:
            return cls.LOW
        if value == 2:
            return cls.CRITICAL
        return cls.NORMAL

    @property
    def label(self) -> str:
        """Title-case name used in the audit log ("Low", "Normal", "Critical")."""
        return self.name.capitalize()


class CloseReason(IntEnum):
    """
    Reason a notification left the store, with its protocol numeric code.

    Members
    -------
    EXPIRED : int
        The display timeout elapsed.
    DISMISSED : int
        The user dismissed the notification (or invoked one of its actions).
    CLOSED : int
        The sender called CloseNotification.
    UNDEFINED : int
        Any other reason.
    """

    EXPIRED = 1
    DISMISSED = 2
    CLOSED = 3
    UNDEFINED = 4

    @property
    def event_name(self) -> str:
        """Audit-log event name for this reason (e.g. ``"expired"``)."""
        return self.name.lower()


@dataclass(frozen=True)
class Action:
    """
    Action button attached to a notification.

    Parameters
    ----------
    key
        Identifier sent back in the ActionInvoked signal.
    label
        Human-readable button text.
    """

    key: str
    label: str


@dataclass(frozen=True)
class RawImage:
    """
    Raw pixel data from an ``image-data`` style hint.

    Field order matches the protocol structure ``(iiibiiay)``.
    """

    width: int
    height: int
    rowstride: int
    has_alpha: bool
    bits_per_sample: int
    channels: int
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class ImagePath:
    """Image referenced by filesystem path or ``file://`` URI."""

    path: str


@dataclass(frozen=True)
class IconName:
    """Image referenced by themed icon name."""

    name: str


NotificationImage = Union[RawImage, ImagePath, IconName]


@dataclass(frozen=True)
class CardChoice:
    """One selectable option of a multiple-choice card."""

    id: str
    label: str


@dataclass(frozen=True)
class MultipleChoiceCard:
    """
    Card asking the user to pick one or more choices.

    Parameters
    ----------
    question
        Prompt shown above the choices.
    choices
        Options in display order.
    allow_other
        Whether a free-text "other" answer may be submitted.
    """

    question: str
    choices: Tuple[CardChoice, ...]
    allow_other: bool = False


@dataclass(frozen=True)
class PermissionCard:
    """
    Card asking the user to grant a permission.

    Parameters
    ----------
    question
        Prompt shown to the user.
    allow_label
        Text of the single approval button.
    """

    question: str
    allow_label: str = "Allow"


NotificationCard = Union[MultipleChoiceCard, PermissionCard]


def _new_correlation_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Notification:
    """
    A desktop notification as held by the store.

    Parameters
    ----------
    id
        Store-assigned identifier. ``0`` until the store accepts it.
    app_name, app_icon, summary, body
        Raw protocol fields.
    actions
        Parsed (key, label) action buttons in protocol order.
    urgency
        Decoded urgency level.
    timeout
        Raw protocol expire timeout: ``0`` persistent, negative for server
        default, positive milliseconds requested by the sender.
    group
        Optional opaque group key (``x-group`` hint).
    acknowledge_to_dismiss
        True when the notification must be dismissed explicitly.
    image
        Resolved image payload, or None.
    desktop_entry, transient, progress, css_class_override
        Optional hint-derived fields.
    card
        Structured card parsed from the body, if any.
    hints
        Stringified snapshot of the hints not otherwise consumed.
    correlation_id
        Process-unique id correlating audit-log events of one notification.
    created_at
        UTC time the notification was built.
    """

    app_name: str = ""
    app_icon: str = ""
    summary: str = ""
    body: str = ""
    id: int = 0
    actions: Tuple[Action, ...] = ()
    urgency: Urgency = Urgency.NORMAL
    timeout: int = -1
    group: Optional[str] = None
    acknowledge_to_dismiss: bool = False
    image: Optional[NotificationImage] = None
    desktop_entry: Optional[str] = None
    transient: bool = False
    progress: Optional[int] = None
    css_class_override: Optional[str] = None
    card: Optional[NotificationCard] = None
    hints: Dict[str, str] = field(default_factory=dict)
    correlation_id: str = field(default_factory=_new_correlation_id)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_persistent(self) -> bool:
        """True when the sender asked for no timeout at all."""
        return self.timeout == 0

