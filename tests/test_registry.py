# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Tests for the algorithm registry and algorithm variants (didjws.registry)."""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from didjws.registry import (
    DEFAULT_REGISTRY,
    AlgorithmDescriptor,
    AlgorithmRegistry,
    EcdsaAlgorithm,
    EcdsaOptions,
    EdDsaAlgorithm,
    EdDsaOptions,
    algorithm_id,
)

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


class TestDefaultRegistry:
    """Test the built-in algorithm table."""

    def test_keys(self):
        """The built-in table has exactly the four composite keys."""
        assert sorted(DEFAULT_REGISTRY) == sorted(
            ["ES256K:", "ES256K:secp256k1", ":secp256k1", "EdDSA:Ed25519"]
        )

    @pytest.mark.parametrize(
        "alg,crv",
        [("ES256K", "secp256k1"), ("ES256K", ""), ("", "secp256k1"), (None, "secp256k1"), ("ES256K", None)],
    )
    def test_secp256k1_variants(self, alg, crv):
        """Every partial secp256k1 key resolves to ES256K."""
        descriptor = DEFAULT_REGISTRY.lookup(alg, crv)
        assert descriptor is not None
        assert descriptor.alg == "ES256K"
        assert descriptor.crv == "secp256k1"
        assert isinstance(descriptor.algorithm, EcdsaAlgorithm)
        assert descriptor.options == EcdsaOptions(hash="SHA-256")

    def test_ed25519(self):
        """EdDSA:Ed25519 resolves to EdDSA."""
        descriptor = DEFAULT_REGISTRY.lookup("EdDSA", "Ed25519")
        assert descriptor.alg == "EdDSA"
        assert isinstance(descriptor.algorithm, EdDsaAlgorithm)
        assert isinstance(descriptor.options, EdDsaOptions)

    @pytest.mark.parametrize(
        "alg,crv",
        [("", ""), (None, None), ("", "Ed25519"), ("EdDSA", ""), ("RS256", ""), ("HS256", "P-256")],
    )
    def test_unsupported(self, alg, crv):
        """Unknown or incomplete pairs are not found."""
        assert DEFAULT_REGISTRY.lookup(alg, crv) is None

    def test_partial_match_cannot_pair_foreign_curve(self):
        """ES256K with an Ed25519 curve must not fall back to 'ES256K:'."""
        assert DEFAULT_REGISTRY.lookup("ES256K", "Ed25519") is None

    def test_partial_match_cannot_pair_foreign_alg(self):
        """EdDSA with secp256k1 must not fall back to ':secp256k1'."""
        assert DEFAULT_REGISTRY.lookup("EdDSA", "secp256k1") is None

    def test_algorithm_id(self):
        """Missing sides of the composite key become empty strings."""
        assert algorithm_id("EdDSA", "Ed25519") == "EdDSA:Ed25519"
        assert algorithm_id(None, "secp256k1") == ":secp256k1"
        assert algorithm_id("ES256K", None) == "ES256K:"


class TestRegistryImmutability:
    """Test that registries cannot be changed after construction."""

    def test_no_item_assignment(self):
        """Item assignment is not supported."""
        with pytest.raises(TypeError):
            DEFAULT_REGISTRY["RS256:"] = DEFAULT_REGISTRY["EdDSA:Ed25519"]  # type: ignore[index]

    def test_source_mapping_is_copied(self):
        """Mutating the constructor argument does not affect the registry."""
        descriptor = DEFAULT_REGISTRY["EdDSA:Ed25519"]
        entries = {"EdDSA:Ed25519": descriptor}
        registry = AlgorithmRegistry(entries)
        entries["EdDSA:"] = descriptor
        assert "EdDSA:" not in registry
        assert len(registry) == 1


class TestLookupPrecedence:
    """Test exact > alg-only > curve-only precedence."""

    def _descriptor(self, alg: str, crv: str) -> AlgorithmDescriptor:
        return AlgorithmDescriptor(EcdsaAlgorithm(), EcdsaOptions(), alg, crv)

    def test_exact_wins(self):
        """An exact entry beats partial entries."""
        exact = self._descriptor("ES256K", "secp256k1")
        alg_only = self._descriptor("ES256K", "secp256k1")
        registry = AlgorithmRegistry({"ES256K:secp256k1": exact, "ES256K:": alg_only})
        assert registry.lookup("ES256K", "secp256k1") is exact

    def test_alg_only_before_curve_only(self):
        """Without an exact entry the alg-only entry is tried first."""
        alg_only = self._descriptor("ES256K", "secp256k1")
        crv_only = self._descriptor("ES256K", "secp256k1")
        registry = AlgorithmRegistry({"ES256K:": alg_only, ":secp256k1": crv_only})
        assert registry.lookup("ES256K", "secp256k1") is alg_only

    def test_curve_only_fallback(self):
        """The curve-only entry is used when nothing else matches."""
        crv_only = self._descriptor("ES256K", "secp256k1")
        registry = AlgorithmRegistry({":secp256k1": crv_only})
        assert registry.lookup("ES256K", "secp256k1") is crv_only


class TestEdDsaAlgorithm:
    """Test the Ed25519 variant directly."""

    def test_sign_verify(self):
        """Signatures are 64 bytes and verify."""
        key = ed25519.Ed25519PrivateKey.generate()
        algorithm = EdDsaAlgorithm()
        signature = algorithm.sign(key, b"data", EdDsaOptions())
        assert len(signature) == 64
        assert algorithm.verify(key.public_key(), b"data", signature, EdDsaOptions())
        assert not algorithm.verify(key.public_key(), b"other", signature, EdDsaOptions())

    def test_wrong_key_type(self):
        """EC keys are rejected."""
        key = ec.generate_private_key(ec.SECP256K1())
        with pytest.raises(TypeError):
            EdDsaAlgorithm().sign(key, b"data", EdDsaOptions())
        assert not EdDsaAlgorithm().verify(key.public_key(), b"data", b"\x00" * 64, EdDsaOptions())


class TestEcdsaAlgorithm:
    """Test the ECDSA variant directly."""

    def test_sign_verify(self):
        """Signatures are 64-byte r||s and verify."""
        key = ec.generate_private_key(ec.SECP256K1())
        algorithm = EcdsaAlgorithm()
        signature = algorithm.sign(key, b"data", EcdsaOptions())
        assert len(signature) == 64
        assert algorithm.verify(key.public_key(), b"data", signature, EcdsaOptions())
        assert not algorithm.verify(key.public_key(), b"other", signature, EcdsaOptions())

    def test_low_s(self):
        """Emitted signatures always have s <= n/2."""
        key = ec.generate_private_key(ec.SECP256K1())
        for i in range(8):
            signature = EcdsaAlgorithm().sign(key, bytes([i]), EcdsaOptions())
            assert int.from_bytes(signature[32:], "big") <= SECP256K1_ORDER // 2

    def test_high_s_rejected(self):
        """The malleated (n - s) twin of a valid signature is rejected."""
        key = ec.generate_private_key(ec.SECP256K1())
        algorithm = EcdsaAlgorithm()
        signature = algorithm.sign(key, b"data", EcdsaOptions())
        s = int.from_bytes(signature[32:], "big")
        malleated = signature[:32] + (SECP256K1_ORDER - s).to_bytes(32, "big")
        assert not algorithm.verify(key.public_key(), b"data", malleated, EcdsaOptions())

    def test_wrong_length_rejected(self):
        """Signatures that are not 2*32 bytes never verify."""
        key = ec.generate_private_key(ec.SECP256K1())
        assert not EcdsaAlgorithm().verify(key.public_key(), b"data", b"\x01" * 63, EcdsaOptions())

    def test_unknown_hash(self):
        """Unsupported hash names are a ValueError at signing time."""
        key = ec.generate_private_key(ec.SECP256K1())
        with pytest.raises(ValueError):
            EcdsaAlgorithm().sign(key, b"data", EcdsaOptions(hash="MD5"))
