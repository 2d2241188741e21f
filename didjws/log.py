# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Logging setup for didjws entry points.

Library modules only create module loggers; handlers are installed by
applications (the CLI calls :func:`configure_logging` on start-up).
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, Optional

from didjws.config import LOG_FORMAT, LOG_LEVEL

__all__ = ["JSONFormatter", "configure_logging"]


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter.

    Produces one JSON object per log line with ``timestamp``, ``level``,
    ``logger``, ``message``, ``module`` and ``funcName`` fields, plus an
    ``exception`` field holding the formatted traceback when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure the root logger.

    Existing handlers are removed first to prevent duplicate output.
    Logs go to stderr so they never mix with command output on stdout.

    Args:
        level: Level name; defaults to ``DIDJWS_LOG_LEVEL``.
        fmt:   ``"json"`` or ``"text"``; defaults to ``DIDJWS_LOG_FORMAT``.
    """
    level = level or LOG_LEVEL
    fmt = fmt or LOG_FORMAT

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )

    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Suppress noisy third-party loggers.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
