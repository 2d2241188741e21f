# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""didjws - compact JWS signatures bound to decentralized identifiers.

Signs payloads with private JWKs and verifies compact JWS strings by
dereferencing the header ``kid`` (a DID URL) to the signer's public key.
"""

__version__ = "0.1.0"

from .canonical import canonicalize, digest
from .exceptions import (
    CanonicalizationError,
    DidJwsError,
    ErrorCode,
    ResolutionError,
    SigningError,
    UnsupportedAlgorithmError,
    VerificationError,
)
from .registry import DEFAULT_REGISTRY, AlgorithmDescriptor, AlgorithmRegistry
from .resolver import HttpDidResolver, StaticDidResolver, VerificationMethod
from .signer import Signer
from .verifier import Verifier

__all__ = [
    "__version__",
    "Signer",
    "Verifier",
    "canonicalize",
    "digest",
    "AlgorithmDescriptor",
    "AlgorithmRegistry",
    "DEFAULT_REGISTRY",
    "HttpDidResolver",
    "StaticDidResolver",
    "VerificationMethod",
    "DidJwsError",
    "ErrorCode",
    "SigningError",
    "VerificationError",
    "UnsupportedAlgorithmError",
    "ResolutionError",
    "CanonicalizationError",
]
