# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Compact JWS signing.

Produces ``header.payload.signature`` strings (or ``header..signature``
for detached payloads, RFC 7515 Appendix F) whose header names the
signing algorithm and the signer's ``kid`` DID URL.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from didjws.encoding import b64url_encode, encode_json_segment
from didjws.exceptions import KeyConversionError, SigningAlgorithmError, SigningError
from didjws.keys import private_key_from_jwk
from didjws.registry import DEFAULT_REGISTRY, AlgorithmRegistry, algorithm_id

logger = logging.getLogger(__name__)

__all__ = ["Signer"]


class Signer:
    """Signs payloads with private JWKs using an injected algorithm registry."""

    def __init__(self, registry: AlgorithmRegistry = DEFAULT_REGISTRY):
        self.registry = registry

    def sign(
        self,
        payload: bytes,
        private_key_jwk: Mapping[str, Any],
        kid: str,
        detached: bool = False,
    ) -> str:
        """Sign *payload* and return a compact JWS.

        The algorithm is chosen from the key's own ``alg``/``crv`` members.

        Args:
            payload:         Bytes to sign (may be empty).
            private_key_jwk: Private key as a JWK.
            kid:             DID URL of the verification method for the key.
            detached:        Omit the payload segment from the result.

        Raises:
            SigningAlgorithmError: The key's ``alg``/``crv`` is not registered.
            SigningError: ``KEY_CONVERSION_FAILED`` or ``SIGNING_FAILED``.
        """
        alg = private_key_jwk.get("alg") if isinstance(private_key_jwk, Mapping) else None
        crv = private_key_jwk.get("crv") if isinstance(private_key_jwk, Mapping) else None
        descriptor = self.registry.lookup(alg, crv)
        if descriptor is None:
            raise SigningAlgorithmError(algorithm_id(alg, crv))

        if not isinstance(kid, str) or not kid:
            raise SigningError.signing_failed("kid must be a non-empty DID URL")
        try:
            encoded_header = encode_json_segment({"alg": descriptor.alg, "kid": kid})
        except ValueError as exc:
            raise SigningError.signing_failed(f"cannot encode JWS header: {exc}") from exc
        encoded_payload = b64url_encode(bytes(payload))

        try:
            key = private_key_from_jwk(private_key_jwk)
        except KeyConversionError as exc:
            raise SigningError.key_conversion_failed(str(exc)) from exc

        signing_input = f"{encoded_header}.{encoded_payload}".encode("ascii")
        try:
            signature = descriptor.algorithm.sign(key, signing_input, descriptor.options)
        except (TypeError, ValueError) as exc:
            raise SigningError.signing_failed(str(exc)) from exc

        encoded_signature = b64url_encode(signature)
        logger.debug("Signed %d payload bytes with %s (detached=%s)", len(payload), descriptor.alg, detached)

        if detached:
            return f"{encoded_header}..{encoded_signature}"
        return f"{encoded_header}.{encoded_payload}.{encoded_signature}"
