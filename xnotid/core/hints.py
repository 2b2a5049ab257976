"""
Total lookups over the protocol hint dictionary.

Hints arrive as ``a{sv}``: a mapping of string keys to D-Bus variants. Senders
are only partially trusted, so every lookup here is a total function: a
missing key, a variant of the wrong type, or a malformed value yields ``None``
and never raises. Callers substitute their own defaults.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from dbus_fast import Variant

from xnotid.domain.models import RawImage

Hints = Mapping[str, Any]

RAW_IMAGE_KEYS: Tuple[str, ...] = ("image-data", "image_data", "icon_data")
IMAGE_PATH_KEYS: Tuple[str, ...] = ("image-path", "image_path")

# Keys never copied into the stringified hint snapshot.
SNAPSHOT_EXCLUDED_KEYS = frozenset(("urgency",) + RAW_IMAGE_KEYS + IMAGE_PATH_KEYS)

_RAW_IMAGE_SIGNATURE = "(iiibiiay)"


def _variant_value(hints: Hints, key: str, *signatures: str) -> Any:
    """
    Return the value of hint `key` if it is a Variant with one of `signatures`.

    Returns None for absent keys, non-variant values, and signature mismatches.
    """
    v = hints.get(key)
    if not isinstance(v, Variant):
        return None
    if v.signature not in signatures:
        return None
    return v.value


def hint_byte(hints: Hints, key: str) -> Optional[int]:
    """Unsigned byte hint (``y``), e.g. ``urgency``."""
    value = _variant_value(hints, key, "y")
    return value if isinstance(value, int) else None


def hint_str(hints: Hints, key: str) -> Optional[str]:
    """String hint (``s``)."""
    value = _variant_value(hints, key, "s")
    return value if isinstance(value, str) else None


def hint_bool(hints: Hints, key: str) -> Optional[bool]:
    """Boolean hint (``b``)."""
    value = _variant_value(hints, key, "b")
    return value if isinstance(value, bool) else None


def hint_int32(hints: Hints, key: str) -> Optional[int]:
    """
    Integer hint accepting ``i`` or ``u``.

    Unsigned values are reinterpreted as signed 32-bit.
    """
    v = hints.get(key)
    if not isinstance(v, Variant) or not isinstance(v.value, int) or isinstance(v.value, bool):
        return None
    if v.signature == "i":
        return v.value
    if v.signature == "u":
        n = v.value & 0xFFFFFFFF
        return n - 2**32 if n >= 2**31 else n
    return None


def hint_raw_image(hints: Hints, key: str) -> Optional[RawImage]:
    """
    Raw image hint with structure ``(iiibiiay)``.

    Returns
    -------
    RawImage or None
        Decoded image, or None if the hint is absent or malformed.
    """
    value = _variant_value(hints, key, _RAW_IMAGE_SIGNATURE)
    if value is None:
        return None
    try:
        width, height, rowstride, has_alpha, bits, channels, data = value
        return RawImage(
            width=int(width),
            height=int(height),
            rowstride=int(rowstride),
            has_alpha=bool(has_alpha),
            bits_per_sample=int(bits),
            channels=int(channels),
            data=bytes(data),
        )
    except (TypeError, ValueError):
        return None


def stringify_hints(hints: Hints) -> Dict[str, str]:
    """
    Debug snapshot of all hints except urgency and image payloads.

    Parameters
    ----------
    hints
        Raw hint mapping.

    Returns
    -------
    dict[str, str]
        Key -> ``"<signature>:<repr(value)>"`` (or ``repr`` for non-variants).
    """
    out: Dict[str, str] = {}
    for key, v in hints.items():
        if key in SNAPSHOT_EXCLUDED_KEYS:
            continue
        if isinstance(v, Variant):
            out[str(key)] = f"{v.signature}:{v.value!r}"
        else:
            out[str(key)] = repr(v)
    return out
