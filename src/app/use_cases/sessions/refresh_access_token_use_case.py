"""
Refresh Access Token Use Case

Exchanges the server-side refresh token for a new access token, with
device binding, rotation bookkeeping and reuse handling.
"""

import logging
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.device_secret import verify_device_secret
from src.app.services.token_exchange_client import (
    ExchangeMalformedSuccess,
    ExchangeProviderError,
    ExchangeReuseDetected,
    ExchangeRevoked,
    ExchangeSuccess,
    ITokenExchangeClient,
)
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import UserSession
from .dtos import RefreshAccessTokenCommand, RefreshAccessTokenResponse

logger = logging.getLogger(__name__)


class RefreshAccessTokenUseCase:
    """
    Use case for minting a new access token from a stored session.

    Flow: resolve session -> verify device -> exchange -> apply rotation -> respond

    Business Rules:
    - Verified identity wins over a client-supplied session id for lookup
    - Device mismatch deletes the session (fail closed)
    - Provider revocation or reuse deletes the session
    - Other provider failures keep the session, the caller may retry
    - A rotated refresh token is stored with the used token kept as previous
    - No lock across requests: concurrent refreshes race, last rotation wins
    """

    def __init__(self, uow: UnitOfWork, token_client: ITokenExchangeClient):
        self.uow = uow
        self.token_client = token_client

    async def execute(
        self, command: RefreshAccessTokenCommand
    ) -> Result[RefreshAccessTokenResponse]:
        """
        Execute refresh access token use case.

        Args:
            command: Lookup key (user id or session id) and device secret

        Returns:
            Result with RefreshAccessTokenResponse, or Error with one of
            NO_SESSION, INVALID_DEVICE, TOKEN_REVOKED, TOKEN_REUSE_DETECTED,
            WORKOS_ERROR
        """
        async with self.uow:
            session = await self._resolve_session(command)
            if session is None:
                return Return.err(
                    Error("NO_SESSION", "No session found. Please log in again.")
                )

            if not verify_device_secret(command.device_secret, session.device_secret_hash):
                logger.warning(
                    f"Device verification failed, deleting session for user {session.user_id}"
                )
                await self.uow.sessions.delete_by_user_id(session.user_id)
                await self.uow.commit()
                return Return.err(
                    Error("INVALID_DEVICE", "Device verification failed.")
                )

            # Copy out before the transaction closes; the provider call is not
            # made while holding it
            user_id, session_id, used_token, device_secret_hash = (
                session.user_id,
                session.session_id,
                session.refresh_token,
                session.device_secret_hash,
            )

        outcome = await self.token_client.refresh(used_token)

        if isinstance(outcome, ExchangeRevoked):
            logger.warning(f"Refresh token revoked for user {user_id}, deleting session")
            await self._delete_session(user_id)
            return Return.err(
                Error("TOKEN_REVOKED", "Session has been revoked. Please log in again.")
            )

        if isinstance(outcome, ExchangeReuseDetected):
            logger.warning(
                f"Refresh token reuse detected for user {user_id}, deleting session"
            )
            await self._delete_session(user_id)
            return Return.err(
                Error(
                    "TOKEN_REUSE_DETECTED",
                    "Security alert: Token reuse detected. Please log in again.",
                )
            )

        if isinstance(outcome, ExchangeMalformedSuccess):
            return Return.err(Error("WORKOS_ERROR", "No access token in response"))

        if isinstance(outcome, ExchangeProviderError):
            return Return.err(Error("WORKOS_ERROR", f"WorkOS error: {outcome.description}"))

        if not isinstance(outcome, ExchangeSuccess):
            return Return.err(Error("WORKOS_ERROR", "Unexpected token exchange result"))

        new_token = outcome.new_refresh_token
        if new_token and new_token != used_token:
            await self._apply_rotation(
                user_id, session_id, new_token, device_secret_hash, used_token
            )

        return Return.ok(
            RefreshAccessTokenResponse(
                access_token=outcome.access_token,
                expires_in=outcome.expires_in,
            )
        )

    async def _resolve_session(
        self, command: RefreshAccessTokenCommand
    ) -> Optional[UserSession]:
        if command.user_id:
            return await self.uow.sessions.find_by_user_id(command.user_id)
        if command.session_id:
            return await self.uow.sessions.find_by_session_id(command.session_id)
        return None

    async def _delete_session(self, user_id: str) -> None:
        async with self.uow:
            await self.uow.sessions.delete_by_user_id(user_id)
            await self.uow.commit()

    async def _apply_rotation(
        self,
        user_id: str,
        session_id: str,
        new_token: str,
        device_secret_hash: str,
        used_token: str,
    ) -> None:
        async with self.uow:
            await self.uow.sessions.upsert(
                user_id=user_id,
                session_id=session_id,
                refresh_token=new_token,
                device_secret_hash=device_secret_hash,
                previous_refresh_token=used_token,
            )
            await self.uow.commit()
        logger.info(f"Refresh token rotated for user {user_id}")
