"""
Unit tests for xnotid.core.hints.

Every lookup must be total: missing keys, wrong variant types and malformed
values yield None instead of raising.
"""

from __future__ import annotations

from dbus_fast import Variant

from xnotid.core.hints import (
    hint_bool,
    hint_byte,
    hint_int32,
    hint_raw_image,
    hint_str,
    stringify_hints,
)


def test_typed_lookups_accept_matching_variants() -> None:
    """Each helper returns the value for its own signature."""
    hints = {
        "urgency": Variant("y", 2),
        "x-group": Variant("s", "build"),
        "transient": Variant("b", True),
        "value": Variant("i", 42),
    }
    assert hint_byte(hints, "urgency") == 2
    assert hint_str(hints, "x-group") == "build"
    assert hint_bool(hints, "transient") is True
    assert hint_int32(hints, "value") == 42


def test_wrong_type_and_missing_keys_yield_none() -> None:
    """A mismatched signature or an absent key is not an error."""
    hints = {
        "urgency": Variant("s", "high"),
        "x-group": Variant("i", 5),
        "transient": Variant("s", "yes"),
        "value": Variant("s", "50"),
        "plain": "not a variant",
    }
    assert hint_byte(hints, "urgency") is None
    assert hint_str(hints, "x-group") is None
    assert hint_bool(hints, "transient") is None
    assert hint_int32(hints, "value") is None
    assert hint_str(hints, "plain") is None
    assert hint_str(hints, "missing") is None


def test_unsigned_int_is_reinterpreted_as_signed() -> None:
    """A ``u`` value above 2**31 wraps to a negative int32."""
    assert hint_int32({"value": Variant("u", 60)}, "value") == 60
    assert hint_int32({"value": Variant("u", 0xFFFFFFFF)}, "value") == -1


def test_raw_image_decodes_struct() -> None:
    """``(iiibiiay)`` decodes into a RawImage with bytes data."""
    hints = {"image-data": Variant("(iiibiiay)", [2, 1, 8, True, 8, 4, b"\x01" * 8])}
    img = hint_raw_image(hints, "image-data")

    assert img is not None
    assert (img.width, img.height, img.rowstride) == (2, 1, 8)
    assert img.has_alpha is True
    assert img.channels == 4
    assert img.data == b"\x01" * 8


def test_raw_image_wrong_signature_is_none() -> None:
    """Any other structure is ignored."""
    assert hint_raw_image({"image-data": Variant("s", "nope")}, "image-data") is None


def test_stringify_excludes_urgency_and_images() -> None:
    """The snapshot keeps signature-tagged reprs of everything else."""
    hints = {
        "urgency": Variant("y", 1),
        "image-path": Variant("s", "/tmp/a.png"),
        "image-data": Variant("(iiibiiay)", [1, 1, 4, True, 8, 4, b"\x00" * 4]),
        "x-group": Variant("s", "g"),
        "value": Variant("i", 3),
    }
    out = stringify_hints(hints)

    assert out == {"x-group": "s:'g'", "value": "i:3"}
