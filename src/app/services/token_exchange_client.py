"""
Token Exchange Client

Contract for redeeming a stored refresh token at the identity provider,
plus the provider-agnostic rules used to classify its answers.
"""

import base64
import binascii
import json
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

DEFAULT_EXPIRES_IN = 300
UNKNOWN_ERROR_CODE = "unknown_error"
DEFAULT_ERROR_DESCRIPTION = "Token refresh failed"


class ConfigurationError(Exception):
    """Raised when the exchange client is built without required settings"""


# ============================================================================
# Exchange results
# ============================================================================


@dataclass(frozen=True)
class ExchangeSuccess:
    access_token: str
    new_refresh_token: Optional[str] = None
    expires_in: int = DEFAULT_EXPIRES_IN

    def __repr__(self) -> str:
        return f"ExchangeSuccess(expires_in={self.expires_in}, rotated={self.new_refresh_token is not None})"


@dataclass(frozen=True)
class ExchangeRevoked:
    reason: str


@dataclass(frozen=True)
class ExchangeReuseDetected:
    reason: str


@dataclass(frozen=True)
class ExchangeProviderError:
    description: str


@dataclass(frozen=True)
class ExchangeMalformedSuccess:
    pass


ExchangeResult = Union[
    ExchangeSuccess,
    ExchangeRevoked,
    ExchangeReuseDetected,
    ExchangeProviderError,
    ExchangeMalformedSuccess,
]


# ============================================================================
# Error classification
# ============================================================================


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    matches: Callable[[str, str], bool]
    build: Callable[[str], ExchangeResult]


def _description_mentions(*needles: str) -> Callable[[str, str], bool]:
    def matches(error_code: str, description: str) -> bool:
        return any(needle in description for needle in needles)

    return matches


# Evaluated top-down, first match wins. Machine error codes come before
# description heuristics so a code-based verdict is never overridden by text.
CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="revoked_by_code",
        matches=lambda error_code, description: error_code
        in ("invalid_grant", "expired_token"),
        build=ExchangeRevoked,
    ),
    ClassificationRule(
        name="revoked_by_description",
        matches=_description_mentions("revoked", "expired"),
        build=ExchangeRevoked,
    ),
    ClassificationRule(
        name="reuse_by_description",
        matches=_description_mentions("reuse", "already used"),
        build=ExchangeReuseDetected,
    ),
)


def classify_provider_error(
    error_code: Optional[str], description: Optional[str]
) -> ExchangeResult:
    """
    Map a non-2xx provider answer to an ExchangeResult.

    Args:
        error_code: Machine-readable OAuth error code, if any
        description: Human-readable error description, if any

    Returns:
        ExchangeRevoked, ExchangeReuseDetected or ExchangeProviderError
    """
    error_code = error_code or UNKNOWN_ERROR_CODE
    description = description or DEFAULT_ERROR_DESCRIPTION

    for rule in CLASSIFICATION_RULES:
        if rule.matches(error_code, description):
            return rule.build(description)
    return ExchangeProviderError(description)


# ============================================================================
# Access token expiry
# ============================================================================


def decode_expires_in(access_token: str, default: int = DEFAULT_EXPIRES_IN) -> int:
    """
    Read exp - iat from an access token's payload segment without verifying it.

    Falls back to default on any decoding problem; never raises.
    """
    try:
        payload_segment = access_token.split(".")[1]
        padded = payload_segment + "=" * (-len(payload_segment) % 4)
        claims = json.loads(base64.urlsafe_b64decode(padded))
        exp = claims.get("exp")
        iat = claims.get("iat")
    except (IndexError, ValueError, TypeError, AttributeError, binascii.Error):
        return default

    if isinstance(exp, bool) or isinstance(iat, bool):
        return default
    if not isinstance(exp, (int, float)) or not isinstance(iat, (int, float)):
        return default
    if not exp or not iat:
        return default
    # json accepts NaN, Infinity and overflowing literals such as 1e999
    try:
        lifetime = exp - iat
    except OverflowError:
        return default
    if isinstance(lifetime, float) and not math.isfinite(lifetime):
        return default
    return int(lifetime)


# ============================================================================
# Client contract
# ============================================================================


class ITokenExchangeClient(ABC):
    """Token exchange client interface - application layer"""

    @abstractmethod
    async def refresh(self, refresh_token: str) -> ExchangeResult:
        """Redeem a refresh token. Must not raise for provider or transport failures."""
        pass
