# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Public signing surface: ``sign``, ``verify`` and ``digest``.

Outer layers (HTTP handlers, message stores, the CLI) only use these
three functions. They map :class:`~didjws.exceptions.DidJwsError` codes
to their own responses; nothing here formats errors for a transport.

Usage::

    from didjws import crypto

    token = crypto.sign(payload=b"...", private_key_jwk=jwk, kid="did:ex:abc#key-1")
    did = await crypto.verify(token, resolver=resolver)
    fingerprint = crypto.digest({"b": 2, "a": 1})
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from didjws.canonical import digest as _digest
from didjws.config import RESOLVER_TIMEOUT_SECONDS
from didjws.registry import DEFAULT_REGISTRY, AlgorithmRegistry
from didjws.resolver import DidResolver, HttpDidResolver
from didjws.signer import Signer
from didjws.verifier import Verifier

__all__ = ["sign", "verify", "digest"]


def digest(payload: Any) -> bytes:
    """SHA-256 of the RFC 8785 canonical JSON form of *payload*."""
    return _digest(payload)


def sign(
    payload: bytes,
    private_key_jwk: Mapping[str, Any],
    kid: str,
    detached: bool = False,
    registry: AlgorithmRegistry = DEFAULT_REGISTRY,
) -> str:
    """Sign *payload*; see :meth:`didjws.signer.Signer.sign`."""
    return Signer(registry).sign(payload, private_key_jwk, kid, detached=detached)


async def verify(
    signature: Optional[str],
    detached_payload: Optional[bytes] = None,
    resolver: Optional[DidResolver] = None,
    registry: AlgorithmRegistry = DEFAULT_REGISTRY,
    timeout: Optional[float] = RESOLVER_TIMEOUT_SECONDS,
) -> str:
    """Verify *signature* and return the signer DID.

    When *resolver* is ``None`` an :class:`HttpDidResolver` for the
    configured resolution service is used.
    """
    if resolver is None:
        resolver = HttpDidResolver()
    verifier = Verifier(resolver, registry=registry, timeout=timeout)
    return await verifier.verify(signature, detached_payload=detached_payload)
