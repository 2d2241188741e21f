# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Base64url and JSON helpers for compact JWS segments.

Encoding always omits ``=`` padding (RFC 7515 §2). Decoding is strict:
only the URL-safe alphabet is accepted, padding is rejected, and the
input must be the canonical encoding of the bytes it decodes to, so two
different segment strings can never decode to the same bytes.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any, Dict

__all__ = [
    "b64url_encode",
    "b64url_decode",
    "is_b64url",
    "encode_json_segment",
    "decode_json_segment",
    "SegmentDecodeError",
]


class SegmentDecodeError(ValueError):
    """Raised when a segment is not strict base64url or not the expected JSON."""


_B64URL_RE = re.compile(r"^[A-Za-z0-9_-]*$")


def is_b64url(segment: str) -> bool:
    """Return ``True`` when *segment* only uses the unpadded base64url alphabet."""
    return bool(_B64URL_RE.match(segment))


def b64url_encode(data: bytes) -> str:
    """Base64url-encode *data* without padding."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64url_decode(segment: str) -> bytes:
    """Strictly decode an unpadded base64url *segment*.

    Raises:
        SegmentDecodeError: On foreign characters, impossible lengths, or a
            non-canonical final character.
    """
    if not is_b64url(segment):
        raise SegmentDecodeError("contains characters outside the base64url alphabet")
    if len(segment) % 4 == 1:
        raise SegmentDecodeError(f"invalid base64url length {len(segment)}")

    padded = segment + "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise SegmentDecodeError(f"base64url decoding failed: {exc}") from exc

    # Unused trailing bits must be zero.
    if b64url_encode(raw) != segment:
        raise SegmentDecodeError("non-canonical base64url encoding")
    return raw


def encode_json_segment(obj: Dict[str, Any]) -> str:
    """Serialize *obj* as compact JSON and base64url-encode it."""
    return b64url_encode(json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8"))


def decode_json_segment(segment: str) -> Dict[str, Any]:
    """Decode a base64url segment holding a JSON object."""
    raw = b64url_decode(segment)
    try:
        obj = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SegmentDecodeError(f"JSON decoding failed: {exc}") from exc
    if not isinstance(obj, dict):
        raise SegmentDecodeError(f"expected JSON object, got {type(obj).__name__}")
    return obj
