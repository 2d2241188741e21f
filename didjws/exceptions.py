# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""didjws exceptions mapped to stable error codes.

Signing and verification each raise exactly one error per failed call.
The ``code`` attribute is what outer layers (HTTP handlers, the CLI)
should branch on; ``message`` is human-readable and never carries key
material, but it may quote caller-supplied values such as ``kid``, so
transport layers should still sanitise before echoing it.
"""


class ErrorCode:
    """Error code constants."""

    ALGORITHM_UNSUPPORTED = "ALGORITHM_UNSUPPORTED"
    KEY_CONVERSION_FAILED = "KEY_CONVERSION_FAILED"
    SIGNING_FAILED = "SIGNING_FAILED"
    SIGNATURE_MISSING = "SIGNATURE_MISSING"
    SIGNATURE_MALFORMED = "SIGNATURE_MALFORMED"
    HEADER_MALFORMED = "HEADER_MALFORMED"
    KEY_RESOLUTION_FAILED = "KEY_RESOLUTION_FAILED"
    KEY_UNRESOLVABLE = "KEY_UNRESOLVABLE"
    INTEGRITY_MISMATCH = "INTEGRITY_MISMATCH"

    # Raised by the command line only.
    CANONICALIZATION_FAILED = "CANONICALIZATION_FAILED"
    DID_DOCUMENT_INVALID = "DID_DOCUMENT_INVALID"


class DidJwsError(Exception):
    """Base exception for signing and verification errors."""

    def __init__(self, code: str, message: str, retryable: bool = False):
        self.code = code
        self.message = message
        self.retryable = retryable
        super().__init__(message)


class UnsupportedAlgorithmError(DidJwsError):
    """No registry entry for the requested ``alg:crv`` pair.

    Raised by both signing and verification; catch this class to handle
    the case independently of the operation.
    """

    def __init__(self, algorithm_id: str, message: str = ""):
        self.algorithm_id = algorithm_id
        super().__init__(
            ErrorCode.ALGORITHM_UNSUPPORTED,
            message or f"{algorithm_id} not supported",
        )


class SigningError(DidJwsError):
    """Failure while producing a compact signature."""

    @classmethod
    def key_conversion_failed(cls, reason: str) -> "SigningError":
        return cls(
            code=ErrorCode.KEY_CONVERSION_FAILED,
            message=f"Signing failed: could not convert private key: {reason}",
        )

    @classmethod
    def signing_failed(cls, reason: str) -> "SigningError":
        return cls(code=ErrorCode.SIGNING_FAILED, message=f"Signing failed: {reason}")


class SigningAlgorithmError(UnsupportedAlgorithmError, SigningError):
    """Signing key declares an ``alg``/``crv`` the registry does not know."""


class VerificationError(DidJwsError):
    """Failure while verifying a compact signature."""

    @classmethod
    def missing(cls) -> "VerificationError":
        return cls(
            code=ErrorCode.SIGNATURE_MISSING,
            message="Signature verification failed: Expected signature property to exist",
        )

    @classmethod
    def malformed_signature(cls, reason: str) -> "VerificationError":
        return cls(
            code=ErrorCode.SIGNATURE_MALFORMED,
            message=f"Signature verification failed: {reason}",
        )

    @classmethod
    def malformed_header(cls, reason: str) -> "VerificationError":
        return cls(
            code=ErrorCode.HEADER_MALFORMED,
            message=f"Signature verification failed: {reason}",
        )

    @classmethod
    def key_resolution_failed(cls, kid: str, reason: str, transient: bool = False) -> "VerificationError":
        return cls(
            code=ErrorCode.KEY_RESOLUTION_FAILED,
            message=f"Signature verification failed: could not dereference kid {kid!r}: {reason}",
            retryable=transient,
        )

    @classmethod
    def unresolvable_key(cls, reason: str) -> "VerificationError":
        return cls(
            code=ErrorCode.KEY_UNRESOLVABLE,
            message=f"Signature verification failed: {reason}",
        )

    @classmethod
    def integrity_mismatch(cls) -> "VerificationError":
        return cls(
            code=ErrorCode.INTEGRITY_MISMATCH,
            message="Signature verification failed: Integrity mismatch",
        )


class VerificationAlgorithmError(UnsupportedAlgorithmError, VerificationError):
    """Header ``alg`` and resolved key ``crv`` do not name a registered algorithm."""


class KeyConversionError(Exception):
    """Raised by the key adapter when JWK fields cannot form a usable key."""


class CanonicalizationError(Exception):
    """Raised when a value cannot be serialized per RFC 8785."""


class ResolutionError(Exception):
    """Raised by DID resolvers when a DID URL cannot be dereferenced.

    ``transient`` marks failures worth retrying (timeouts, upstream 5xx,
    connection errors) as opposed to definitive ones (unknown DID,
    missing fragment).
    """

    def __init__(self, message: str, transient: bool = False):
        self.transient = transient
        super().__init__(message)
