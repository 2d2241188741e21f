# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Shared utilities for didjws CLI commands.

This module provides common functionality for:
- Reading input from stdin, files, or arguments
- Running async functions from sync CLI context
- Exit codes
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Coroutine, TypeVar, Union

import typer

# Exit codes
EXIT_SUCCESS = 0
EXIT_VALIDATION_FAILURE = 1
EXIT_PARSE_ERROR = 2
EXIT_IO_ERROR = 3

T = TypeVar("T")


def _is_file(path: Path) -> bool:
    # Compact JWS tokens can exceed the platform file name limit.
    try:
        return path.is_file()
    except OSError:
        return False


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run async function from sync CLI context."""
    return asyncio.run(coro)


def read_input(
    source: str,
    binary: bool = False,
    encoding: str = "utf-8",
) -> Union[str, bytes]:
    """Read input from stdin, file, or argument.

    Args:
        source: Input source - "-" for stdin, file path, or literal value
        binary: If True, read as bytes (for payloads)
        encoding: Text encoding (ignored if binary=True)

    Returns:
        Content as string or bytes depending on binary flag

    Raises:
        typer.Exit: On I/O errors with appropriate exit code
    """
    try:
        if source == "-":
            if binary:
                return sys.stdin.buffer.read()
            return sys.stdin.read()

        path = Path(source)
        if _is_file(path):
            if binary:
                return path.read_bytes()
            return path.read_text(encoding=encoding)

        # Treat as literal value (for compact JWS strings, inline JSON, etc.)
        if binary:
            return source.encode(encoding)
        return source

    except IOError as e:
        typer.echo(f"Error reading input: {e}", err=True)
        raise typer.Exit(EXIT_IO_ERROR) from e


def read_json_input(source: str) -> Any:
    """Read JSON input from stdin, file, or argument.

    Raises:
        typer.Exit: On I/O or parse errors
    """
    content = read_input(source, binary=False)

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        typer.echo(f"Invalid JSON: {e}", err=True)
        raise typer.Exit(EXIT_PARSE_ERROR) from e
