# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""DID URL dereferencing for signature verification.

The verifier only needs one thing from DID resolution: turn a ``kid``
DID URL (``did:method:id#fragment``) into the verification method it
names. This module defines that contract (:class:`DidResolver`) and two
adapters:

``StaticDidResolver``
    Serves DID documents held in memory. Used by tests and by callers
    that pin the documents of known peers.

``HttpDidResolver``
    Resolves DIDs through an HTTP resolution service exposing the
    Universal Resolver API (``GET {base}/1.0/identifiers/{did}``) and
    dereferences the fragment locally. No DID method is implemented
    here; the service does the method-specific work.

Neither adapter caches results: key rotation published in a DID
document must be visible to the very next verification.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol, Tuple
from urllib.parse import quote

import httpx

from didjws.config import KID_SEPARATOR, RESOLVER_TIMEOUT_SECONDS, RESOLVER_URL
from didjws.exceptions import ResolutionError

logger = logging.getLogger(__name__)

__all__ = [
    "VerificationMethod",
    "DidResolver",
    "StaticDidResolver",
    "HttpDidResolver",
    "parse_did_url",
    "find_verification_method",
]

# DID document properties that may embed verification methods.
_METHOD_PROPERTIES = (
    "verificationMethod",
    "authentication",
    "assertionMethod",
    "capabilityInvocation",
    "capabilityDelegation",
)


@dataclass(frozen=True)
class VerificationMethod:
    """A verification method entry of a DID document.

    Attributes:
        id:             Absolute DID URL of the method.
        type:           Method type (e.g. ``"JsonWebKey2020"``).
        controller:     DID controlling the key.
        public_key_jwk: Public key as a JWK, when the method carries one.
    """

    id: str
    type: str
    controller: str
    public_key_jwk: Optional[Dict[str, Any]] = None


class DidResolver(Protocol):
    """Anything able to dereference a DID URL to a verification method."""

    async def dereference(self, did_url: str) -> VerificationMethod:
        """Return the verification method named by *did_url*.

        Raises:
            ResolutionError: If the DID cannot be resolved or the fragment
                does not name a verification method.
        """
        ...


def parse_did_url(did_url: str) -> Tuple[str, str]:
    """Split ``did:method:id#fragment`` into ``(did, fragment)``.

    Raises:
        ResolutionError: If *did_url* is not a DID URL with a fragment.
    """
    did, sep, fragment = did_url.partition(KID_SEPARATOR)
    parts = did.split(":", 2)
    if len(parts) < 3 or parts[0] != "did" or not parts[1] or not parts[2]:
        raise ResolutionError(f"not a DID URL: {did_url!r}")
    if not sep or not fragment:
        raise ResolutionError(f"DID URL has no fragment: {did_url!r}")
    return did, fragment


def _parse_method(raw: Mapping[str, Any], did: str) -> VerificationMethod:
    method_id = str(raw.get("id", ""))
    if method_id.startswith(KID_SEPARATOR):
        method_id = did + method_id
    jwk = raw.get("publicKeyJwk")
    return VerificationMethod(
        id=method_id,
        type=str(raw.get("type", "")),
        controller=str(raw.get("controller", did)),
        public_key_jwk=dict(jwk) if isinstance(jwk, Mapping) else None,
    )


def _embedded_methods(document: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
    for prop in _METHOD_PROPERTIES:
        entries = document.get(prop)
        if not isinstance(entries, list):
            continue
        for entry in entries:
            # Plain string entries are references, not embedded methods.
            if isinstance(entry, Mapping):
                yield entry


def find_verification_method(document: Mapping[str, Any], did_url: str) -> VerificationMethod:
    """Dereference the fragment of *did_url* inside a resolved DID *document*.

    Method ids may be absolute (``did:ex:1#key-1``) or relative
    (``#key-1``); both match.

    Raises:
        ResolutionError: If the document belongs to another DID or has no
            matching verification method.
    """
    did, fragment = parse_did_url(did_url)
    if document.get("id") != did:
        raise ResolutionError(
            f"DID document id {document.get('id')!r} does not match {did!r}"
        )

    target = f"{did}{KID_SEPARATOR}{fragment}"
    for raw in _embedded_methods(document):
        method = _parse_method(raw, did)
        if method.id == target:
            return method

    raise ResolutionError(f"no verification method {target!r} in DID document")


class StaticDidResolver:
    """Dereferences DID URLs against DID documents held in memory."""

    def __init__(self, documents: Iterable[Mapping[str, Any]] = ()):
        self._documents: Dict[str, Mapping[str, Any]] = {}
        for document in documents:
            self.add(document)

    def add(self, document: Mapping[str, Any]) -> None:
        """Register (or replace) *document* under its ``id``."""
        did = document.get("id")
        if not isinstance(did, str) or not did:
            raise ValueError("DID document has no 'id'")
        self._documents[did] = document

    async def dereference(self, did_url: str) -> VerificationMethod:
        did, _ = parse_did_url(did_url)
        document = self._documents.get(did)
        if document is None:
            raise ResolutionError(f"DID not found: {did}")
        return find_verification_method(document, did_url)


class HttpDidResolver:
    """Resolves DIDs through a Universal Resolver compatible HTTP service.

    Args:
        base_url: Service root, e.g. ``https://dev.uniresolver.io``.
        timeout:  Per-request timeout in seconds.
        client:   Optional shared ``httpx.AsyncClient``. When ``None`` a
                  short-lived client is created per call.
    """

    def __init__(
        self,
        base_url: str = RESOLVER_URL,
        timeout: float = RESOLVER_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _identifier_url(self, did: str) -> str:
        return f"{self.base_url}/1.0/identifiers/{quote(did, safe=':')}"

    async def _get(self, url: str) -> httpx.Response:
        headers = {"Accept": "application/did+ld+json, application/did+json, application/json"}
        if self._client is not None:
            return await self._client.get(url, headers=headers, timeout=self.timeout)
        async with httpx.AsyncClient(follow_redirects=True) as client:
            return await client.get(url, headers=headers, timeout=self.timeout)

    async def resolve(self, did: str) -> Dict[str, Any]:
        """Fetch the DID document for *did*.

        Raises:
            ResolutionError: ``transient=True`` for timeouts, transport
                errors and 5xx responses; ``transient=False`` otherwise.
        """
        url = self._identifier_url(did)
        try:
            response = await self._get(url)
        except httpx.TimeoutException as exc:
            logger.warning("DID resolution timed out for %s", did)
            raise ResolutionError(f"resolution of {did} timed out", transient=True) from exc
        except httpx.TransportError as exc:
            logger.warning("DID resolution transport error for %s: %s", did, exc)
            raise ResolutionError(f"resolution of {did} failed: {exc}", transient=True) from exc
        except httpx.HTTPError as exc:
            raise ResolutionError(f"resolution of {did} failed: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise ResolutionError(f"invalid resolver URL for {did}: {exc}") from exc

        if response.status_code == 404:
            raise ResolutionError(f"DID not found: {did}")
        if response.status_code >= 500:
            raise ResolutionError(
                f"resolver returned HTTP {response.status_code} for {did}", transient=True
            )
        if response.status_code != 200:
            raise ResolutionError(f"resolver returned HTTP {response.status_code} for {did}")

        try:
            body = response.json()
        except ValueError as exc:
            raise ResolutionError(f"resolver returned invalid JSON for {did}") from exc
        if not isinstance(body, dict):
            raise ResolutionError(f"resolver returned non-object body for {did}")

        # Resolution result envelope or a bare DID document.
        document = body.get("didDocument", body)
        if not isinstance(document, dict):
            raise ResolutionError(f"resolver returned no DID document for {did}")
        return document

    async def dereference(self, did_url: str) -> VerificationMethod:
        did, _ = parse_did_url(did_url)
        document = await self.resolve(did)
        logger.debug("Resolved DID document for %s", did)
        return find_verification_method(document, did_url)
