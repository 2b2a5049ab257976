"""
Decode a protocol Notify call into a Notification.

Decoding is fail-soft: every field degrades to a type-appropriate default so a
malformed or partially understood request still produces a displayable
notification. Identity is left at ``0`` for the store to assign.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from xnotid.core.cards import parse_card
from xnotid.core.hints import (
    IMAGE_PATH_KEYS,
    RAW_IMAGE_KEYS,
    Hints,
    hint_bool,
    hint_byte,
    hint_int32,
    hint_raw_image,
    hint_str,
    stringify_hints,
)
from xnotid.domain.models import (
    Action,
    IconName,
    ImagePath,
    Notification,
    NotificationImage,
    Urgency,
)


def parse_actions(raw: Sequence[str]) -> Tuple[Action, ...]:
    """
    Pair up a flat ``[key, label, key, label, ...]`` action list.

    A trailing unpaired element is dropped.

    Parameters
    ----------
    raw
        Flat action list from the protocol.

    Returns
    -------
    tuple of Action
        Actions in protocol order.
    """
    items = list(raw)
    actions: List[Action] = []
    for i in range(0, len(items) - 1, 2):
        actions.append(Action(key=str(items[i]), label=str(items[i + 1])))
    return tuple(actions)


def classify_image_ref(ref: str) -> Optional[NotificationImage]:
    """
    Classify an image reference as a filesystem path or a themed icon name.

    References starting with ``/`` or ``file://`` are paths; anything else
    non-empty is an icon name. Empty references yield None.
    """
    if not ref:
        return None
    if ref.startswith("/") or ref.startswith("file://"):
        return ImagePath(ref)
    return IconName(ref)


def resolve_image(hints: Hints, app_icon: str) -> Optional[NotificationImage]:
    """
    Resolve the notification image by fixed precedence.

    Order
    -----
    1) raw pixel hint (``image-data``, ``image_data``, ``icon_data``)
    2) ``image-path`` / ``image_path`` hint
    3) the ``app_icon`` parameter
    4) None
    """
    for key in RAW_IMAGE_KEYS:
        raw = hint_raw_image(hints, key)
        if raw is not None:
            return raw

    for key in IMAGE_PATH_KEYS:
        image = classify_image_ref(hint_str(hints, key) or "")
        if image is not None:
            return image

    return classify_image_ref(app_icon)


def _clamp_progress(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    return max(0, min(100, value))


def build_notification(
    app_name: str,
    app_icon: str,
    summary: str,
    body: str,
    actions: Sequence[str],
    hints: Hints,
    expire_timeout: int,
) -> Notification:
    """
    Build a Notification from the arguments of a Notify call.

    Parameters
    ----------
    app_name, app_icon, summary, body
        Raw protocol strings.
    actions
        Flat alternating key/label list.
    hints
        Hint mapping (string -> variant).
    expire_timeout
        Raw protocol timeout.

    Returns
    -------
    Notification
        Fully populated notification with ``id == 0``.
    """
    hints = hints or {}
    card = parse_card(body)

    urgency_byte = hint_byte(hints, "urgency")
    urgency = Urgency.from_byte(urgency_byte) if urgency_byte is not None else Urgency.NORMAL

    acknowledge = bool(hint_bool(hints, "x-acknowledge")) or card is not None

    return Notification(
        app_name=app_name,
        app_icon=app_icon,
        summary=summary,
        body=body,
        actions=parse_actions(actions or ()),
        urgency=urgency,
        timeout=int(expire_timeout),
        group=hint_str(hints, "x-group"),
        acknowledge_to_dismiss=acknowledge,
        image=resolve_image(hints, app_icon),
        desktop_entry=hint_str(hints, "desktop-entry"),
        transient=bool(hint_bool(hints, "transient")),
        progress=_clamp_progress(hint_int32(hints, "value")),
        css_class_override=hint_str(hints, "x-css-class"),
        card=card,
        hints=stringify_hints(hints),
    )
