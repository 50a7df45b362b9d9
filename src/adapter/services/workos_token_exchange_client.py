import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from src.app.services.token_exchange_client import (
    DEFAULT_EXPIRES_IN,
    ConfigurationError,
    ExchangeMalformedSuccess,
    ExchangeProviderError,
    ExchangeResult,
    ExchangeSuccess,
    ITokenExchangeClient,
    classify_provider_error,
    decode_expires_in,
)

logger = logging.getLogger(__name__)

WORKOS_TOKEN_URL = "https://api.workos.com/user_management/authenticate"


class ProviderTokenResponse(BaseModel):
    """Token endpoint body, success or error. Unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


class WorkOSTokenExchangeClient(ITokenExchangeClient):
    """
    Refresh-token grant against the WorkOS user management API.

    The client id is fixed at construction; an empty client id is a
    deployment error and is rejected immediately.
    """

    def __init__(
        self,
        client_id: str,
        token_url: str = WORKOS_TOKEN_URL,
        timeout: float = 10.0,
        default_expires_in: int = DEFAULT_EXPIRES_IN,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not client_id:
            raise ConfigurationError("WORKOS_CLIENT_ID is not configured")
        self.client_id = client_id
        self.token_url = token_url
        self.timeout = timeout
        self.default_expires_in = default_expires_in
        self._http_client = http_client

    async def refresh(self, refresh_token: str) -> ExchangeResult:
        form = {
            "grant_type": "refresh_token",
            "client_id": self.client_id,
            "refresh_token": refresh_token,
        }

        try:
            response = await self._post(form)
        except httpx.HTTPError as exc:
            logger.warning(f"Token endpoint unreachable: {type(exc).__name__}")
            return ExchangeProviderError("Token endpoint unreachable")

        body = self._parse_body(response)

        if not response.is_success:
            if body is None:
                return ExchangeProviderError(
                    f"Token endpoint returned HTTP {response.status_code}"
                )
            result = classify_provider_error(body.error, body.error_description)
            logger.info(
                f"Token endpoint rejected refresh: status={response.status_code} "
                f"error={body.error} outcome={type(result).__name__}"
            )
            return result

        if body is None or not body.access_token:
            logger.warning("Token endpoint returned success without an access token")
            return ExchangeMalformedSuccess()

        return ExchangeSuccess(
            access_token=body.access_token,
            new_refresh_token=body.refresh_token or None,
            expires_in=decode_expires_in(body.access_token, self.default_expires_in),
        )

    async def _post(self, form: dict) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(
                self.token_url, data=form, timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.token_url, data=form)

    @staticmethod
    def _parse_body(response: httpx.Response) -> Optional[ProviderTokenResponse]:
        try:
            return ProviderTokenResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            return None
