import logging
from typing import Optional

import httpx
from fastapi import Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Error
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.workos_token_exchange_client import WorkOSTokenExchangeClient
from src.api.error import ClientError
from src.api.utils.jwt import verify_jwt
from src.app.services.token_exchange_client import (
    ConfigurationError,
    ITokenExchangeClient,
)

logger = logging.getLogger(__name__)

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# Callers whose access token already expired still reach the refresh routes
security = HTTPBearer(auto_error=False)

# Process-wide provider client, reusing pooled connections across requests
_http_client: Optional[httpx.AsyncClient] = None
_token_exchange_client: Optional[ITokenExchangeClient] = None
# Set once construction failed; configuration is read only at startup
_token_exchange_unavailable = False


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_token_exchange_client() -> Optional[ITokenExchangeClient]:
    """
    Dependency returning the shared token exchange client.

    Returns None when the provider client id is not configured, so each
    entry point can answer with its own server error envelope.
    """
    global _token_exchange_client, _token_exchange_unavailable

    if _token_exchange_unavailable:
        return None

    if _token_exchange_client is None:
        try:
            _token_exchange_client = _build_token_exchange_client()
        except ConfigurationError as exc:
            _token_exchange_unavailable = True
            logger.error(f"Token exchange client unavailable: {exc}")
            return None
        logger.info("Token exchange client initialized")

    return _token_exchange_client


def _build_token_exchange_client() -> WorkOSTokenExchangeClient:
    global _http_client

    if _http_client is None:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(ApplicationConfig.WORKOS_TIMEOUT_SECONDS)
        )
    return WorkOSTokenExchangeClient(
        client_id=ApplicationConfig.WORKOS_CLIENT_ID,
        token_url=ApplicationConfig.WORKOS_TOKEN_URL,
        timeout=ApplicationConfig.WORKOS_TIMEOUT_SECONDS,
        default_expires_in=ApplicationConfig.DEFAULT_EXPIRES_IN,
        http_client=_http_client,
    )


async def close_token_exchange_client() -> None:
    """Release pooled provider connections. Call on application shutdown."""
    global _http_client, _token_exchange_client, _token_exchange_unavailable

    _token_exchange_client = None
    _token_exchange_unavailable = False
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
        logger.info("Token exchange HTTP client closed")


async def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[dict]:
    """
    Dependency returning the verified caller claims, or None.

    A missing, invalid or expired bearer token yields None rather than 401.
    """
    if credentials is None:
        return None
    return verify_jwt(credentials.credentials)


async def get_current_identity(
    identity: Optional[dict] = Depends(get_optional_identity),
) -> dict:
    """
    Dependency requiring verified caller claims (sub, sid).

    Raises:
        ClientError: 401 UNAUTHORIZED if no valid bearer token was sent
    """
    if identity is None:
        raise ClientError(
            Error("UNAUTHORIZED", "Not authenticated"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return identity
