# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""didjws CLI - sign, verify and digest from the command line.

Commands:
    didjws digest <json>                    Canonical SHA-256 digest
    didjws sign <payload> --key --kid       Produce a compact JWS
    didjws public-key <jwk>                 Print the public JWK of a private key
    didjws verify <token>                   Verify and print the signer DID
"""

from enum import Enum
from typing import List, Optional

import typer

from didjws import __version__, crypto
from didjws.cli.output import output_error, output_json
from didjws.cli.utils import (
    EXIT_PARSE_ERROR,
    EXIT_VALIDATION_FAILURE,
    read_input,
    read_json_input,
    run_async,
)
from didjws.config import RESOLVER_TIMEOUT_SECONDS, RESOLVER_URL
from didjws.encoding import b64url_encode
from didjws.exceptions import CanonicalizationError, DidJwsError, ErrorCode, KeyConversionError
from didjws.keys import public_jwk_from_private
from didjws.log import configure_logging
from didjws.resolver import DidResolver, HttpDidResolver, StaticDidResolver

app = typer.Typer(
    name="didjws",
    help="DID-bound compact JWS tools.",
    no_args_is_help=True,
)


class DigestEncoding(str, Enum):
    """Digest output encodings."""

    hex = "hex"
    base64url = "base64url"


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"didjws version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (defaults to DIDJWS_LOG_LEVEL).",
    ),
) -> None:
    """DID-bound compact JWS tools.

    Inputs may be literal values, file paths, or '-' for stdin.

    Examples:
        didjws digest '{"b":2,"a":1}'
        didjws sign message.json --key key.jwk --kid did:example:abc#key-1
        didjws verify token.jws --did-document did.json
    """
    configure_logging(level=log_level)


@app.command("digest")
def digest_cmd(
    source: str = typer.Argument(..., help="JSON value, file path, or '-' for stdin"),
    encoding: DigestEncoding = typer.Option(
        DigestEncoding.hex,
        "--encoding",
        "-e",
        help="Digest output encoding",
    ),
) -> None:
    """Print the SHA-256 digest of the canonical (RFC 8785) JSON form."""
    value = read_json_input(source)
    try:
        raw = crypto.digest(value)
    except CanonicalizationError as e:
        output_error(code=ErrorCode.CANONICALIZATION_FAILED, message=str(e), exit_code=EXIT_PARSE_ERROR)
        return

    encoded = raw.hex() if encoding == DigestEncoding.hex else b64url_encode(raw)
    output_json({"digest": encoded, "encoding": encoding.value})


@app.command("sign")
def sign_cmd(
    source: str = typer.Argument(..., help="Payload, file path, or '-' for stdin"),
    key: str = typer.Option(..., "--key", "-k", help="Private JWK (file path or JSON)"),
    kid: str = typer.Option(..., "--kid", help="DID URL of the signing key"),
    detached: bool = typer.Option(False, "--detached", help="Omit the payload from the JWS"),
) -> None:
    """Sign a payload and print the compact JWS."""
    payload = read_input(source, binary=True)
    jwk = read_json_input(key)
    if not isinstance(jwk, dict):
        output_error(code=ErrorCode.KEY_CONVERSION_FAILED, message="JWK must be a JSON object", exit_code=EXIT_PARSE_ERROR)
        return

    try:
        token = crypto.sign(payload, jwk, kid, detached=detached)
    except DidJwsError as e:
        output_error(code=e.code, message=e.message, exit_code=EXIT_VALIDATION_FAILURE)
        return

    typer.echo(token)


@app.command("public-key")
def public_key_cmd(
    key: str = typer.Argument(..., help="Private JWK (file path, JSON, or '-' for stdin)"),
) -> None:
    """Print the public JWK to publish in the signer's DID document."""
    jwk = read_json_input(key)
    try:
        public = public_jwk_from_private(jwk)
    except KeyConversionError as e:
        output_error(code=ErrorCode.KEY_CONVERSION_FAILED, message=str(e), exit_code=EXIT_VALIDATION_FAILURE)
        return

    output_json(public)


@app.command("verify")
def verify_cmd(
    source: str = typer.Argument(..., help="Compact JWS, file path, or '-' for stdin"),
    detached_payload: Optional[str] = typer.Option(
        None,
        "--detached-payload",
        "-p",
        help="Payload of a detached JWS (literal, file path, or '-')",
    ),
    did_documents: Optional[List[str]] = typer.Option(
        None,
        "--did-document",
        "-d",
        help="Trust these DID documents instead of resolving (repeatable)",
    ),
    resolver_url: str = typer.Option(
        RESOLVER_URL,
        "--resolver-url",
        help="DID resolution service base URL",
    ),
    timeout: float = typer.Option(
        RESOLVER_TIMEOUT_SECONDS,
        "--timeout",
        help="Key resolution deadline in seconds",
    ),
) -> None:
    """Verify a compact JWS and print the signer DID."""
    token = str(read_input(source, binary=False)).strip()
    payload = read_input(detached_payload, binary=True) if detached_payload is not None else None

    resolver: DidResolver
    if did_documents:
        documents = [read_json_input(doc) for doc in did_documents]
        if not all(isinstance(doc, dict) and doc.get("id") for doc in documents):
            output_error(code=ErrorCode.DID_DOCUMENT_INVALID, message="DID documents must be JSON objects with an 'id'", exit_code=EXIT_PARSE_ERROR)
            return
        resolver = StaticDidResolver(documents)
    else:
        resolver = HttpDidResolver(base_url=resolver_url, timeout=timeout)

    try:
        did = run_async(crypto.verify(token, detached_payload=payload, resolver=resolver, timeout=timeout))
    except DidJwsError as e:
        output_error(
            code=e.code,
            message=e.message,
            details={"retryable": True} if e.retryable else None,
            exit_code=EXIT_VALIDATION_FAILURE,
        )
        return

    output_json({"valid": True, "did": did})


if __name__ == "__main__":
    app()
