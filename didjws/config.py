# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""didjws configuration.

Normative constants are fixed by the JWS/DID wire format. Configurable
defaults may be overridden via environment variables.
"""

import os

# =============================================================================
# NORMATIVE CONSTANTS
# =============================================================================

# Separates the DID from the verification method fragment in a ``kid``.
KID_SEPARATOR: str = "#"

# SHA-256 output length in bytes.
DIGEST_SIZE: int = 32

# =============================================================================
# DID RESOLUTION
# =============================================================================

RESOLVER_URL: str = os.getenv("DIDJWS_RESOLVER_URL", "https://dev.uniresolver.io")
RESOLVER_TIMEOUT_SECONDS: float = float(os.getenv("DIDJWS_RESOLVER_TIMEOUT", "5.0"))

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL: str = os.getenv("DIDJWS_LOG_LEVEL", "INFO")
LOG_FORMAT: str = os.getenv("DIDJWS_LOG_FORMAT", "json")
