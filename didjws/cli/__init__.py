"""didjws command line tools."""

from didjws.cli.main import app

__all__ = ["app"]
