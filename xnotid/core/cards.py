"""
Structured card payloads embedded in the notification body.

A sender can turn a notification into an interactive prompt by sending a JSON
object as the body::

    {"xnotid_card": "v1", "type": "permission", "question": "Allow?"}
    {"xnotid_card": "v1", "type": "multiple-choice", "question": "Pick",
     "choices": [{"id": "a", "label": "A"}], "allow_other": true}

Parsing is speculative: anything that is not such an envelope with marker
``"v1"`` is plain (possibly markup) body text and yields no card.

When the user answers a card, the answer travels back to the sender as the
action key of an ActionInvoked signal (see :func:`card_response_key`).
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from xnotid.domain.models import (
    CardChoice,
    MultipleChoiceCard,
    NotificationCard,
    PermissionCard,
)

CARD_MARKER_KEY = "xnotid_card"
CARD_MARKER_VERSION = "v1"

PERMISSION_ALLOW_KEY = "allow"


def _require_str(obj: Dict[str, Any], key: str) -> str:
    value = obj[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


def _decode_choice(raw: Any) -> CardChoice:
    if not isinstance(raw, dict):
        raise TypeError("choice must be an object")
    return CardChoice(id=_require_str(raw, "id"), label=_require_str(raw, "label"))


def _decode_card(obj: Dict[str, Any]) -> NotificationCard:
    """
    Decode a card envelope into a card model.

    Raises
    ------
    KeyError
        If a required field is missing.
    TypeError
        If a field has the wrong JSON type.
    ValueError
        If the card type is unknown.
    """
    t = obj.get("type")

    if t == "multiple-choice":
        choices = obj["choices"]
        if not isinstance(choices, list):
            raise TypeError("choices must be a list")
        allow_other = obj.get("allow_other", False)
        if not isinstance(allow_other, bool):
            raise TypeError("allow_other must be a boolean")
        return MultipleChoiceCard(
            question=_require_str(obj, "question"),
            choices=tuple(_decode_choice(c) for c in choices),
            allow_other=allow_other,
        )

    if t == "permission":
        allow_label = obj.get("allow_label", "Allow")
        if not isinstance(allow_label, str):
            raise TypeError("allow_label must be a string")
        return PermissionCard(question=_require_str(obj, "question"), allow_label=allow_label)

    raise ValueError(f"Unknown card type: {t}")


def parse_card(body: str) -> Optional[NotificationCard]:
    """
    Parse a card out of a notification body.

    Parameters
    ----------
    body
        Raw notification body.

    Returns
    -------
    NotificationCard or None
        The card, or None when the body is not a valid ``v1`` envelope.
    """
    if not body or not body.lstrip().startswith("{"):
        return None
    try:
        obj = json.loads(body)
    except (ValueError, RecursionError):
        return None
    if not isinstance(obj, dict) or obj.get(CARD_MARKER_KEY) != CARD_MARKER_VERSION:
        return None
    try:
        return _decode_card(obj)
    except (KeyError, TypeError, ValueError):
        return None


def card_response_key(
    card: NotificationCard,
    selected_ids: Iterable[str] = (),
    other_text: str = "",
) -> str:
    """
    Build the action key that answers `card`.

    Parameters
    ----------
    card
        Card being answered.
    selected_ids
        Ids of the chosen options (multiple-choice only). Unknown ids are
        ignored; the result follows the card's choice order.
    other_text
        Free-text answer (multiple-choice with ``allow_other`` only).

    Returns
    -------
    str
        ``"allow"`` for permission cards; a compact JSON document
        ``{"type": "multiple-choice", "selected": [...], "other": ...}``
        for multiple-choice cards.
    """
    if isinstance(card, PermissionCard):
        return PERMISSION_ALLOW_KEY

    wanted = set(selected_ids)
    selected: List[Dict[str, str]] = [
        {"id": c.id, "label": c.label} for c in card.choices if c.id in wanted
    ]
    other = other_text.strip() if card.allow_other else ""
    payload = {
        "type": "multiple-choice",
        "selected": selected,
        "other": other or None,
    }
    return json.dumps(payload, separators=(",", ":"))
