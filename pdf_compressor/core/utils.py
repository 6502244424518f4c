"""Shared utility functions for the PDF compression service.

Contains:
- env_bool / env_int / env_str: tolerant environment lookups
- format_mb: human-readable megabyte formatting for logs and the banner
"""

import logging
import os
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

MIB: int = 1024 * 1024


def _lookup(name: str, environ: Optional[Mapping[str, str]]) -> Optional[str]:
    source = os.environ if environ is None else environ
    return source.get(name)


def env_bool(name: str, default: bool, environ: Optional[Mapping[str, str]] = None) -> bool:
    raw = _lookup(name, environ)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


def env_int(
    name: str,
    default: int,
    environ: Optional[Mapping[str, str]] = None,
    *,
    minimum: Optional[int] = None,
) -> int:
    """Read an integer, falling back to ``default`` on bad or out-of-range values."""
    raw = _lookup(name, environ)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("[settings] Invalid %s=%s; using %s", name, raw, default)
        return default
    if minimum is not None and value < minimum:
        logger.warning("[settings] Out-of-range %s=%s; using %s", name, raw, default)
        return default
    return value


def env_str(name: str, default: str, environ: Optional[Mapping[str, str]] = None) -> str:
    raw = _lookup(name, environ)
    if raw is None:
        return default
    raw = raw.strip()
    return raw or default


def format_mb(size_bytes: int) -> str:
    """Format a byte count as megabytes, e.g. ``25MB`` or ``1.5MB``."""
    mb = size_bytes / MIB
    if mb == int(mb):
        return f"{int(mb)}MB"
    return f"{mb:.1f}MB"
