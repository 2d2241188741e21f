# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Shared test fixtures for the didjws test suite.

Provides real Ed25519 and secp256k1 key material as JWKs, DID documents
publishing the matching public keys, and an in-memory resolver serving
those documents.
"""

from __future__ import annotations

import base64
from typing import Any, Callable, Dict, Tuple

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from didjws.resolver import StaticDidResolver


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def public_part(jwk: Dict[str, str]) -> Dict[str, str]:
    return {k: v for k, v in jwk.items() if k in ("kty", "crv", "x", "y")}


# =========================================================================
# Key material
# =========================================================================

def new_ed25519_jwk() -> Dict[str, str]:
    key = ed25519.Ed25519PrivateKey.generate()
    d = key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    x = key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return {"kty": "OKP", "crv": "Ed25519", "alg": "EdDSA", "d": b64url(d), "x": b64url(x)}


def new_secp256k1_jwk() -> Dict[str, str]:
    key = ec.generate_private_key(ec.SECP256K1())
    numbers = key.private_numbers()
    return {
        "kty": "EC",
        "crv": "secp256k1",
        "alg": "ES256K",
        "d": b64url(numbers.private_value.to_bytes(32, "big")),
        "x": b64url(numbers.public_numbers.x.to_bytes(32, "big")),
        "y": b64url(numbers.public_numbers.y.to_bytes(32, "big")),
    }


@pytest.fixture
def ed25519_jwk() -> Dict[str, str]:
    """A fresh private Ed25519 JWK declaring ``alg: EdDSA``."""
    return new_ed25519_jwk()


@pytest.fixture
def secp256k1_jwk() -> Dict[str, str]:
    """A fresh private secp256k1 JWK declaring ``alg: ES256K``."""
    return new_secp256k1_jwk()


@pytest.fixture(params=["EdDSA:Ed25519", "ES256K:secp256k1", ":secp256k1"])
def signing_jwk(request) -> Dict[str, str]:
    """A fresh private JWK for every registered algorithm entry."""
    if request.param == "EdDSA:Ed25519":
        return new_ed25519_jwk()
    jwk = new_secp256k1_jwk()
    if request.param == ":secp256k1":
        # Selected by curve alone.
        del jwk["alg"]
    return jwk


# =========================================================================
# DID documents
# =========================================================================

def did_document(did: str, jwk: Dict[str, str], fragment: str = "key-1") -> Dict[str, Any]:
    """Build a DID document publishing the public part of *jwk* as ``#fragment``."""
    return {
        "@context": ["https://www.w3.org/ns/did/v1"],
        "id": did,
        "verificationMethod": [
            {
                "id": f"#{fragment}",
                "type": "JsonWebKey2020",
                "controller": did,
                "publicKeyJwk": public_part(jwk),
            }
        ],
        "assertionMethod": [f"#{fragment}"],
    }


@pytest.fixture
def make_did_document() -> Callable[..., Dict[str, Any]]:
    """Factory fixture wrapping :func:`did_document`."""
    return did_document


@pytest.fixture
def signer_identity(signing_jwk) -> Tuple[str, Dict[str, str], StaticDidResolver]:
    """A signer (kid, private JWK) and a resolver that knows its DID document."""
    did = "did:example:abc"
    resolver = StaticDidResolver([did_document(did, signing_jwk)])
    return f"{did}#key-1", signing_jwk, resolver


@pytest.fixture
def make_jwk() -> Callable[[str], Dict[str, str]]:
    """Factory fixture: ``make_jwk("EdDSA")`` or ``make_jwk("ES256K")``."""

    def _make(alg: str) -> Dict[str, str]:
        return new_ed25519_jwk() if alg == "EdDSA" else new_secp256k1_jwk()

    return _make
