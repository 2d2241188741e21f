# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Compact JWS verification against DID-resolved keys.

Verification is a fixed sequence of checks that stops at the first
violated contract and raises exactly one :class:`VerificationError`:

1.  Signature present                         -> ``SIGNATURE_MISSING``
2.  Exactly three ``.``-separated segments     -> ``SIGNATURE_MALFORMED``
3.  Detached payload implies empty segment     -> ``SIGNATURE_MALFORMED``
4.  Header is base64url JSON with alg and kid  -> ``HEADER_MALFORMED``
5.  ``kid`` dereferences to a method           -> ``KEY_RESOLUTION_FAILED``
6.  Method carries ``publicKeyJwk``            -> ``KEY_UNRESOLVABLE``
7.  Payload/signature segments are base64url   -> ``SIGNATURE_MALFORMED``
8.  ``alg`` + key ``crv`` are registered       -> ``ALGORITHM_UNSUPPORTED``
9.  Public JWK converts to a key               -> ``KEY_UNRESOLVABLE``
10. Signature verifies                         -> ``INTEGRITY_MISMATCH``

On success the signer's DID (the ``kid`` before ``#``) is returned.

The resolver call is the only suspension point and is bounded by the
verifier's deadline. Nothing is cached between calls.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from didjws.config import KID_SEPARATOR, RESOLVER_TIMEOUT_SECONDS
from didjws.encoding import (
    SegmentDecodeError,
    b64url_decode,
    b64url_encode,
    decode_json_segment,
    is_b64url,
)
from didjws.exceptions import (
    KeyConversionError,
    ResolutionError,
    VerificationAlgorithmError,
    VerificationError,
)
from didjws.keys import public_key_from_jwk
from didjws.registry import DEFAULT_REGISTRY, AlgorithmRegistry, algorithm_id
from didjws.resolver import DidResolver, VerificationMethod

logger = logging.getLogger(__name__)

__all__ = ["Verifier"]


class Verifier:
    """Verifies compact JWS strings and returns the signer DID.

    Args:
        resolver: DID URL dereferencer used to fetch the signer's key.
        registry: Algorithm registry; defaults to the built-in algorithms.
        timeout:  Deadline in seconds for the resolver call, ``None`` for
                  no deadline.
    """

    def __init__(
        self,
        resolver: DidResolver,
        registry: AlgorithmRegistry = DEFAULT_REGISTRY,
        timeout: Optional[float] = RESOLVER_TIMEOUT_SECONDS,
    ):
        self.resolver = resolver
        self.registry = registry
        self.timeout = timeout

    async def _dereference(self, kid: str) -> VerificationMethod:
        try:
            if self.timeout is None:
                return await self.resolver.dereference(kid)
            return await asyncio.wait_for(self.resolver.dereference(kid), self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Key resolution timed out after %ss for kid=%s", self.timeout, kid)
            raise VerificationError.key_resolution_failed(
                kid, f"timed out after {self.timeout}s", transient=True
            ) from exc
        except ResolutionError as exc:
            logger.warning("Key resolution failed for kid=%s: %s", kid, exc)
            raise VerificationError.key_resolution_failed(
                kid, str(exc), transient=exc.transient
            ) from exc
        except Exception as exc:
            logger.warning("Key resolution raised %s for kid=%s: %s", type(exc).__name__, kid, exc)
            raise VerificationError.key_resolution_failed(kid, str(exc)) from exc

    async def verify(self, signature: Optional[str], detached_payload: Optional[bytes] = None) -> str:
        """Verify *signature* and return the signer's DID.

        Args:
            signature:        Compact JWS (``header.payload.signature``).
            detached_payload: Payload for a detached JWS (``header..signature``).
                              Empty bytes count as a supplied payload.

        Raises:
            VerificationError: On the first failed check (see module docs).
            VerificationAlgorithmError: Unregistered ``alg``/``crv`` pair.
        """
        if not signature:
            raise VerificationError.missing()

        parts = signature.split(".")
        if len(parts) != 3:
            raise VerificationError.malformed_signature(
                f"Expected compact JWS with 3 segments, got {len(parts)}"
            )
        encoded_header, encoded_payload, encoded_signature = parts

        if detached_payload is not None:
            if encoded_payload:
                raise VerificationError.malformed_signature(
                    "Expected valid JWS with detached content"
                )
            encoded_payload = b64url_encode(bytes(detached_payload))

        try:
            header = decode_json_segment(encoded_header)
        except SegmentDecodeError as exc:
            raise VerificationError.malformed_header(f"Invalid JWS header: {exc}") from exc

        alg = header.get("alg")
        kid = header.get("kid")
        if not isinstance(alg, str) or not alg or not isinstance(kid, str) or not kid:
            raise VerificationError.malformed_header("Expected JWS header to contain alg and kid")

        method = await self._dereference(kid)

        public_key_jwk = method.public_key_jwk
        if not public_key_jwk:
            raise VerificationError.unresolvable_key(
                "Expected kid in JWS header to dereference to a DID Document "
                "Verification Method with publicKeyJwk"
            )

        if not is_b64url(encoded_payload):
            raise VerificationError.malformed_signature("JWS payload is not base64url")
        signed_data = f"{encoded_header}.{encoded_payload}".encode("ascii")
        try:
            signature_bytes = b64url_decode(encoded_signature)
        except SegmentDecodeError as exc:
            raise VerificationError.malformed_signature(f"Invalid JWS signature: {exc}") from exc

        crv = public_key_jwk.get("crv")
        descriptor = self.registry.lookup(alg, crv)
        if descriptor is None:
            raise VerificationAlgorithmError(algorithm_id(alg, crv))

        try:
            key = public_key_from_jwk(public_key_jwk)
        except KeyConversionError as exc:
            raise VerificationError.unresolvable_key(f"Unusable publicKeyJwk: {exc}") from exc

        if not descriptor.algorithm.verify(key, signed_data, signature_bytes, descriptor.options):
            raise VerificationError.integrity_mismatch()

        did = kid.split(KID_SEPARATOR, 1)[0]
        logger.debug("Verified %s signature for %s", descriptor.alg, did)
        return did
