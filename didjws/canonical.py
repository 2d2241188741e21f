# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Canonical JSON serialization and digest.

Values are serialized following RFC 8785 (JSON Canonicalization
Scheme): object members sorted by UTF-16 code unit, no insignificant
whitespace, ECMAScript number formatting, UTF-8 output. Two values that
are structurally equal therefore produce identical bytes regardless of
the insertion order of their keys, and the SHA-256 of those bytes is a
stable digest usable across implementations.

References
----------
- RFC 8785 — JSON Canonicalization Scheme
- FIPS 180-4 — SHA-256
"""

from __future__ import annotations

import hashlib
from typing import Any

import rfc8785

from didjws.exceptions import CanonicalizationError

__all__ = [
    "canonicalize",
    "digest",
]


def canonicalize(value: Any) -> bytes:
    """Serialize *value* to RFC 8785 canonical JSON bytes.

    Raises
    ------
    CanonicalizationError
        If *value* holds something JCS cannot represent (NaN, infinities,
        integers beyond the I-JSON safe range, non-JSON types).
    """
    try:
        return rfc8785.dumps(value)
    except (rfc8785.CanonicalizationError, TypeError) as exc:
        raise CanonicalizationError(f"Cannot canonicalize value: {exc}") from exc


def digest(value: Any) -> bytes:
    """Return the SHA-256 digest of the canonical serialization of *value*."""
    return hashlib.sha256(canonicalize(value)).digest()
