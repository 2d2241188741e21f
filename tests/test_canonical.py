# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Tests for canonical JSON serialization and digest (didjws.canonical)."""

from __future__ import annotations

import hashlib

import pytest

from didjws.canonical import canonicalize, digest
from didjws.config import DIGEST_SIZE
from didjws.exceptions import CanonicalizationError


class TestCanonicalize:
    """Test RFC 8785 serialization."""

    def test_sorted_keys_no_whitespace(self):
        """Keys are sorted and no insignificant whitespace is emitted."""
        assert canonicalize({"b": 2, "a": 1}) == b'{"a":1,"b":2}'

    def test_nested_objects_sorted(self):
        """Nested object members are sorted too."""
        value = {"z": {"y": [3, {"d": None, "c": True}], "x": "s"}}
        assert canonicalize(value) == b'{"z":{"x":"s","y":[3,{"c":true,"d":null}]}}'

    def test_non_ascii_is_utf8(self):
        """Non-ASCII characters are emitted as UTF-8, not escaped."""
        assert canonicalize({"s": "é"}) == '{"s":"é"}'.encode("utf-8")

    def test_nan_rejected(self):
        """NaN has no JSON representation."""
        with pytest.raises(CanonicalizationError):
            canonicalize({"n": float("nan")})

    def test_unsupported_type_rejected(self):
        """Non-JSON types raise CanonicalizationError."""
        with pytest.raises(CanonicalizationError):
            canonicalize({"o": object()})


class TestDigest:
    """Test the SHA-256 digest of the canonical form."""

    def test_key_order_independent(self):
        """Structurally equal values produce equal digests."""
        assert digest({"a": 1, "b": 2}) == digest({"b": 2, "a": 1})

    def test_repeatable(self):
        """Repeated calls on equal input are byte-identical."""
        value = {"list": [1, 2, 3], "nested": {"k": "v"}}
        assert digest(value) == digest(dict(value))

    def test_is_sha256_of_canonical_bytes(self):
        """The digest is SHA-256 over the canonical bytes."""
        assert digest({"b": 2, "a": 1}) == hashlib.sha256(b'{"a":1,"b":2}').digest()
        assert len(digest([])) == DIGEST_SIZE

    def test_different_values_differ(self):
        """Different values produce different digests."""
        assert digest({"a": 1}) != digest({"a": 2})
