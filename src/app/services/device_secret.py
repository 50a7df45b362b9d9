"""
Device secret hashing.

A device secret is generated on the client and never stored in clear text.
Only its SHA-256 hex digest is kept next to the refresh token, binding the
stored session to the device that created it.
"""

import hashlib
import hmac
from typing import Optional


def hash_device_secret(secret: str) -> str:
    """Return the lowercase SHA-256 hex digest of the secret's UTF-8 bytes."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def verify_device_secret(secret: Optional[str], expected_hash: Optional[str]) -> bool:
    """
    Check a presented device secret against a stored digest.

    A missing secret or a missing stored digest never verifies.
    """
    if not secret or not expected_hash:
        return False
    return hmac.compare_digest(hash_device_secret(secret), expected_hash)
