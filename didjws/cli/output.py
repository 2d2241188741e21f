# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Output formatting for didjws CLI commands.

Results go to stdout as JSON (compact by default, for piping); errors
go to stderr as JSON objects carrying the error code.
"""

import json
import sys
from typing import Any, Optional

import typer


def output_json(data: Any, pretty: bool = False) -> None:
    """Output data as JSON to stdout."""
    indent = 2 if pretty else None
    try:
        print(json.dumps(data, indent=indent, default=str))
    except TypeError as e:
        typer.echo(f"Error serializing output: {e}", err=True)
        raise typer.Exit(2) from e


def output_error(
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """Output an error and exit.

    Args:
        code: Error code
        message: Error message
        details: Optional error details
        exit_code: Exit code to use
    """
    error_data: dict[str, Any] = {
        "error": True,
        "code": code,
        "message": message,
    }
    if details:
        error_data["details"] = details

    print(json.dumps(error_data), file=sys.stderr)
    raise typer.Exit(exit_code)
