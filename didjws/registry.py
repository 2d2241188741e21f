# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Signature algorithm registry.

Maps a composite ``"<alg>:<crv>"`` key to an :class:`AlgorithmDescriptor`
carrying the algorithm implementation, its options, and the canonical
JOSE ``alg``/``crv`` labels. The registry is built once and is read-only
afterwards, so it can be shared by concurrent signers and verifiers
without locking.

Algorithms form a closed set of variants, each with its own options type:

- :class:`EdDsaAlgorithm` with :class:`EdDsaOptions` — Ed25519 (RFC 8037)
- :class:`EcdsaAlgorithm` with :class:`EcdsaOptions` — ECDSA with a named
  hash, signatures in the JOSE ``r || s`` form (RFC 7518 §3.4)

Lookup precedence
-----------------
Registry keys may leave one side empty (``"ES256K:"``, ``":secp256k1"``).
:meth:`AlgorithmRegistry.lookup` tries the exact key first, then the
alg-only key, then the curve-only key. A partial entry only matches when
its canonical labels agree with every label the caller supplied.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from didjws.keys import PrivateKey, PublicKey

logger = logging.getLogger(__name__)

__all__ = [
    "EdDsaOptions",
    "EcdsaOptions",
    "AlgorithmOptions",
    "SignatureAlgorithm",
    "EdDsaAlgorithm",
    "EcdsaAlgorithm",
    "AlgorithmDescriptor",
    "AlgorithmRegistry",
    "algorithm_id",
    "build_default_registry",
    "DEFAULT_REGISTRY",
]


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EdDsaOptions:
    """EdDSA takes no parameters beyond the curve carried by the key."""

    name: str = "EdDSA"


@dataclass(frozen=True)
class EcdsaOptions:
    """ECDSA parameters.

    Attributes:
        hash: Digest applied to the signing input (``"SHA-256"``,
            ``"SHA-384"`` or ``"SHA-512"``).
    """

    name: str = "ECDSA"
    hash: str = "SHA-256"


AlgorithmOptions = Union[EdDsaOptions, EcdsaOptions]


# ---------------------------------------------------------------------------
# Algorithms
# ---------------------------------------------------------------------------

class SignatureAlgorithm(ABC):
    """Sign/verify capability shared by every registered algorithm."""

    @abstractmethod
    def sign(self, key: PrivateKey, data: bytes, options: AlgorithmOptions) -> bytes:
        """Sign *data*; raises ``TypeError``/``ValueError`` on unusable input."""

    @abstractmethod
    def verify(
        self,
        key: PublicKey,
        data: bytes,
        signature: bytes,
        options: AlgorithmOptions,
    ) -> bool:
        """Return ``True`` only if *signature* over *data* is valid for *key*."""


class EdDsaAlgorithm(SignatureAlgorithm):
    """Ed25519 signatures (64 bytes)."""

    def sign(self, key: PrivateKey, data: bytes, options: AlgorithmOptions) -> bytes:
        if not isinstance(key, ed25519.Ed25519PrivateKey):
            raise TypeError(f"EdDSA requires an Ed25519 private key, got {type(key).__name__}")
        return key.sign(data)

    def verify(
        self,
        key: PublicKey,
        data: bytes,
        signature: bytes,
        options: AlgorithmOptions,
    ) -> bool:
        if not isinstance(key, ed25519.Ed25519PublicKey):
            return False
        try:
            key.verify(signature, data)
        except InvalidSignature:
            return False
        return True


class EcdsaAlgorithm(SignatureAlgorithm):
    """ECDSA with fixed-width ``r || s`` signatures and low-S normalisation.

    Signatures are always emitted with ``s <= n/2`` and signatures with a
    high ``s`` are rejected, which removes ECDSA's one-bit malleability.
    """

    _HASHES = {
        "SHA-256": hashes.SHA256,
        "SHA-384": hashes.SHA384,
        "SHA-512": hashes.SHA512,
    }

    # Group orders for curves usable with this algorithm.
    _ORDERS = {
        "secp256k1": 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141,
    }

    def _hash(self, options: AlgorithmOptions) -> hashes.HashAlgorithm:
        if not isinstance(options, EcdsaOptions):
            raise TypeError(f"ECDSA requires EcdsaOptions, got {type(options).__name__}")
        try:
            return self._HASHES[options.hash]()
        except KeyError:
            raise ValueError(f"unsupported ECDSA hash {options.hash!r}") from None

    def _order(self, curve: ec.EllipticCurve) -> int:
        try:
            return self._ORDERS[curve.name]
        except KeyError:
            raise ValueError(f"unsupported ECDSA curve {curve.name!r}") from None

    def sign(self, key: PrivateKey, data: bytes, options: AlgorithmOptions) -> bytes:
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise TypeError(f"ECDSA requires an EC private key, got {type(key).__name__}")
        order = self._order(key.curve)
        der = key.sign(data, ec.ECDSA(self._hash(options)))
        r, s = decode_dss_signature(der)
        if s > order // 2:
            s = order - s
        size = (key.curve.key_size + 7) // 8
        return r.to_bytes(size, "big") + s.to_bytes(size, "big")

    def verify(
        self,
        key: PublicKey,
        data: bytes,
        signature: bytes,
        options: AlgorithmOptions,
    ) -> bool:
        if not isinstance(key, ec.EllipticCurvePublicKey):
            return False
        order = self._order(key.curve)
        size = (key.curve.key_size + 7) // 8
        if len(signature) != 2 * size:
            return False
        r = int.from_bytes(signature[:size], "big")
        s = int.from_bytes(signature[size:], "big")
        if not (0 < r < order and 0 < s <= order // 2):
            return False
        try:
            key.verify(encode_dss_signature(r, s), data, ec.ECDSA(self._hash(options)))
        except InvalidSignature:
            return False
        return True


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AlgorithmDescriptor:
    """A registered algorithm.

    Attributes:
        algorithm: Implementation used for signing and verification.
        options:   Options passed to every sign/verify call.
        alg:       Canonical JOSE ``alg`` written into signature headers.
        crv:       Canonical JWK ``crv`` of keys usable with the algorithm.
    """

    algorithm: SignatureAlgorithm
    options: AlgorithmOptions
    alg: str
    crv: str


def algorithm_id(alg: Optional[str], crv: Optional[str]) -> str:
    """Return the composite registry key ``"<alg>:<crv>"``; missing sides become ``""``."""
    return f"{alg or ''}:{crv or ''}"


class AlgorithmRegistry(Mapping[str, AlgorithmDescriptor]):
    """Read-only mapping from ``"<alg>:<crv>"`` keys to descriptors."""

    def __init__(self, entries: Mapping[str, AlgorithmDescriptor]):
        self._entries: Mapping[str, AlgorithmDescriptor] = MappingProxyType(dict(entries))

    def __getitem__(self, key: str) -> AlgorithmDescriptor:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AlgorithmRegistry({sorted(self._entries)!r})"

    def lookup(self, alg: Optional[str], crv: Optional[str]) -> Optional[AlgorithmDescriptor]:
        """Resolve *alg*/*crv* to a descriptor, or ``None`` when unsupported.

        Tries the exact key, then ``"<alg>:"``, then ``":<crv>"``.
        """
        alg = alg or ""
        crv = crv or ""

        exact = self._entries.get(algorithm_id(alg, crv))
        if exact is not None:
            return exact

        for key in (algorithm_id(alg, ""), algorithm_id("", crv)):
            if key == ":":
                continue
            candidate = self._entries.get(key)
            if candidate is None:
                continue
            if alg and candidate.alg != alg:
                continue
            if crv and candidate.crv != crv:
                continue
            logger.debug("Registry partial match %s for %s", key, algorithm_id(alg, crv))
            return candidate

        return None


def build_default_registry() -> AlgorithmRegistry:
    """Build the registry of built-in algorithms."""
    secp256k1 = AlgorithmDescriptor(
        algorithm=EcdsaAlgorithm(),
        options=EcdsaOptions(hash="SHA-256"),
        alg="ES256K",
        crv="secp256k1",
    )
    ed25519_descriptor = AlgorithmDescriptor(
        algorithm=EdDsaAlgorithm(),
        options=EdDsaOptions(),
        alg="EdDSA",
        crv="Ed25519",
    )
    entries: Dict[str, AlgorithmDescriptor] = {
        "ES256K:": secp256k1,
        "ES256K:secp256k1": secp256k1,
        ":secp256k1": secp256k1,
        "EdDSA:Ed25519": ed25519_descriptor,
    }
    return AlgorithmRegistry(entries)


DEFAULT_REGISTRY: AlgorithmRegistry = build_default_registry()
