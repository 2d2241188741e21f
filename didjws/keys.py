# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""JWK to key handle adapter.

This is the only place that reads raw JWK fields. Signing and
verification receive ready-to-use ``cryptography`` key objects and never
inspect ``d``/``x``/``y`` themselves. Supported key types:

- ``OKP`` / ``Ed25519`` (RFC 8037)
- ``EC`` / ``secp256k1`` (RFC 8812)

Private JWKs that also carry public coordinates are checked for
consistency, so a key pair spliced together from two different keys is
rejected before it can produce signatures nobody can verify.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Union

from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from didjws.encoding import SegmentDecodeError, b64url_decode, b64url_encode
from didjws.exceptions import KeyConversionError

__all__ = [
    "PrivateKey",
    "PublicKey",
    "private_key_from_jwk",
    "public_key_from_jwk",
    "public_jwk_from_private",
]

PrivateKey = Union[ed25519.Ed25519PrivateKey, ec.EllipticCurvePrivateKey]
PublicKey = Union[ed25519.Ed25519PublicKey, ec.EllipticCurvePublicKey]

_EC_CURVES: Dict[str, ec.EllipticCurve] = {
    "secp256k1": ec.SECP256K1(),
}

_FIELD_SIZE = 32


def _field(jwk: Mapping[str, Any], name: str) -> bytes:
    value = jwk.get(name)
    if not isinstance(value, str) or not value:
        raise KeyConversionError(f"JWK is missing '{name}'")
    try:
        raw = b64url_decode(value)
    except SegmentDecodeError as exc:
        raise KeyConversionError(f"JWK '{name}' is not base64url: {exc}") from exc
    if len(raw) != _FIELD_SIZE:
        raise KeyConversionError(
            f"JWK '{name}' must be {_FIELD_SIZE} bytes, got {len(raw)}"
        )
    return raw


def _key_type(jwk: Mapping[str, Any]) -> tuple:
    if not isinstance(jwk, Mapping):
        raise KeyConversionError(f"JWK must be a JSON object, got {type(jwk).__name__}")
    kty = jwk.get("kty")
    crv = jwk.get("crv")
    if kty == "OKP" and crv == "Ed25519":
        return kty, crv
    if kty == "EC" and crv in _EC_CURVES:
        return kty, crv
    raise KeyConversionError(f"unsupported key type kty={kty!r} crv={crv!r}")


def _ec_public_numbers(jwk: Mapping[str, Any], crv: str) -> ec.EllipticCurvePublicNumbers:
    x = int.from_bytes(_field(jwk, "x"), "big")
    y = int.from_bytes(_field(jwk, "y"), "big")
    return ec.EllipticCurvePublicNumbers(x, y, _EC_CURVES[crv])


def private_key_from_jwk(jwk: Mapping[str, Any]) -> PrivateKey:
    """Build a signing key from a private JWK.

    Raises:
        KeyConversionError: If the JWK is incomplete, malformed, of an
            unsupported type, or its public part does not match ``d``.
    """
    kty, crv = _key_type(jwk)
    d = _field(jwk, "d")

    if kty == "OKP":
        key = ed25519.Ed25519PrivateKey.from_private_bytes(d)
        if "x" in jwk:
            derived = key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
            if derived != _field(jwk, "x"):
                raise KeyConversionError("JWK 'x' does not match private key 'd'")
        return key

    try:
        key = ec.derive_private_key(int.from_bytes(d, "big"), _EC_CURVES[crv])
    except ValueError as exc:
        raise KeyConversionError(f"invalid {crv} private scalar: {exc}") from exc
    if "x" in jwk or "y" in jwk:
        if key.public_key().public_numbers() != _ec_public_numbers(jwk, crv):
            raise KeyConversionError("JWK 'x'/'y' do not match private key 'd'")
    return key


def public_key_from_jwk(jwk: Mapping[str, Any]) -> PublicKey:
    """Build a verify-only key from a public JWK.

    Any ``d`` member is ignored: a verification method must never be
    able to turn the verifier into a signer.

    Raises:
        KeyConversionError: If the JWK is incomplete, malformed, of an
            unsupported type, or (EC) the point is not on the curve.
    """
    kty, crv = _key_type(jwk)

    if kty == "OKP":
        return ed25519.Ed25519PublicKey.from_public_bytes(_field(jwk, "x"))

    try:
        return _ec_public_numbers(jwk, crv).public_key()
    except ValueError as exc:
        raise KeyConversionError(f"invalid {crv} public point: {exc}") from exc


def public_jwk_from_private(jwk: Mapping[str, Any]) -> Dict[str, str]:
    """Return the public JWK matching a private JWK (``kty``, ``crv``, ``x``, ``y``)."""
    kty, crv = _key_type(jwk)
    key = private_key_from_jwk(jwk)
    public = key.public_key()

    if kty == "OKP":
        raw = public.public_bytes(Encoding.Raw, PublicFormat.Raw)
        return {"kty": kty, "crv": crv, "x": b64url_encode(raw)}

    numbers = public.public_numbers()
    return {
        "kty": kty,
        "crv": crv,
        "x": b64url_encode(numbers.x.to_bytes(_FIELD_SIZE, "big")),
        "y": b64url_encode(numbers.y.to_bytes(_FIELD_SIZE, "big")),
    }
