"""HMAC-SHA256 request signing for the compression endpoint.

Callers sign the ``x-timestamp`` header value with the shared secret and send
the hex digest as ``x-signature``. There is no freshness window unless
``SIGNATURE_MAX_AGE_SECONDS`` is configured.
"""

import hashlib
import hmac
import logging
import time
from functools import wraps
from typing import Optional, Union

from flask import current_app, request

from pdf_compressor.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-signature"
TIMESTAMP_HEADER = "x-timestamp"

# Timestamps above this are treated as epoch milliseconds.
_MILLISECOND_CUTOFF = 10 ** 11


def _as_bytes(secret: Union[str, bytes]) -> bytes:
    return secret if isinstance(secret, bytes) else secret.encode("utf-8")


def compute_signature(secret: Union[str, bytes], timestamp: str) -> str:
    """Return the hex HMAC-SHA256 of ``timestamp`` under ``secret``."""
    return hmac.new(_as_bytes(secret), timestamp.encode("utf-8"), hashlib.sha256).hexdigest()


def _timestamp_is_fresh(timestamp: str, max_age_seconds: int, now: Optional[float]) -> bool:
    try:
        value = float(timestamp.strip())
    except ValueError:
        return False
    if value > _MILLISECOND_CUTOFF:
        value /= 1000.0
    current = time.time() if now is None else now
    return abs(current - value) <= max_age_seconds


def verify_signature(
    secret: Union[str, bytes],
    timestamp: Optional[str],
    signature: Optional[str],
    max_age_seconds: int = 0,
    now: Optional[float] = None,
) -> bool:
    """Check ``signature`` against HMAC-SHA256(secret, timestamp).

    Both operands are first reduced to fixed-length digests so that the final
    ``compare_digest`` runs in time independent of the mismatch position and
    of the length of the caller-supplied value. Any error is a rejection.
    """
    if not signature or not timestamp:
        return False

    try:
        key = _as_bytes(secret)
        expected = compute_signature(key, timestamp)
        provided_digest = hmac.new(key, signature.encode("utf-8"), hashlib.sha256).digest()
        expected_digest = hmac.new(key, expected.encode("utf-8"), hashlib.sha256).digest()
        matches = hmac.compare_digest(provided_digest, expected_digest)
    except Exception as exc:
        logger.warning("Signature validation error: %s", type(exc).__name__)
        return False

    if not matches:
        return False
    if max_age_seconds > 0 and not _timestamp_is_fresh(timestamp, max_age_seconds, now):
        logger.warning("Stale timestamp rejected: %s", timestamp[:32])
        return False
    return True


def require_signature(f):
    """Decorator to require a valid ``x-signature``/``x-timestamp`` pair."""
    @wraps(f)
    def decorated(*args, **kwargs):
        signature = request.headers.get(SIGNATURE_HEADER)
        timestamp = request.headers.get(TIMESTAMP_HEADER)

        if not signature or not timestamp:
            logger.warning(f"Missing signature or timestamp on {request.path}")
            raise AuthenticationError.missing()

        config = current_app.extensions["pdf_compressor"]
        if not verify_signature(
            config.secret_bytes,
            timestamp,
            signature,
            max_age_seconds=config.signature_max_age_seconds,
        ):
            logger.warning("Invalid signature attempt (timestamp=%s)", timestamp[:32])
            raise AuthenticationError.invalid()

        return f(*args, **kwargs)
    return decorated
