from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.api.error import SERVER_CONFIGURATION_ERROR, ServerError, to_http_error
from src.app.services.token_exchange_client import ITokenExchangeClient
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.sessions import (
    HasValidSessionUseCase,
    LogoutUseCase,
    RefreshAccessTokenCommand,
    RefreshAccessTokenResponse,
    RefreshAccessTokenUseCase,
    SessionStatusResponse,
    StoreSessionCommand,
    StoreSessionUseCase,
    SuccessResponse,
)
from src.depends import (
    get_current_identity,
    get_optional_identity,
    get_token_exchange_client,
    get_unit_of_work,
)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


class StoreSessionRequest(BaseModel):
    """
    Store session HTTP request payload

    Sent once, right after the client finished logging in with the provider.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    refresh_token: str = Field(..., min_length=1, repr=False, description="Provider refresh token")
    session_id: str = Field(..., min_length=1, description="Provider session id (sid claim)")
    device_secret: str = Field(..., min_length=1, repr=False, description="Secret held by this device")


class RefreshAccessTokenRequest(BaseModel):
    """
    Refresh HTTP request payload

    sessionId is only used when the call carries no valid identity.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: Optional[str] = Field(None, description="Provider session id")
    device_secret: str = Field(..., repr=False, description="Secret held by this device")


@router.post("", status_code=status.HTTP_200_OK, response_model=SuccessResponse)
async def store_session(
    request: StoreSessionRequest,
    identity: dict = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Store Session

    Keeps the provider refresh token server-side. The client must discard its
    copy after this call.

    Raises:
        - 401 Unauthorized: No verified identity
        - 422 Unprocessable Entity: Invalid input (handled by FastAPI)
        - 500 Internal Server Error: Server error
    """
    command = StoreSessionCommand(
        user_id=identity["sub"],
        session_id=request.session_id,
        refresh_token=request.refresh_token,
        device_secret=request.device_secret,
    )

    use_case = StoreSessionUseCase(uow)
    result = await use_case.execute(command)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=RefreshAccessTokenResponse,
)
async def refresh_access_token(
    request: RefreshAccessTokenRequest,
    identity: Optional[dict] = Depends(get_optional_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_client: Optional[ITokenExchangeClient] = Depends(get_token_exchange_client),
):
    """
    Refresh Access Token

    Looks the session up by the caller's identity when present, otherwise by
    the supplied sessionId. The stored refresh token never leaves the server.

    Raises:
        - 401 Unauthorized: INVALID_DEVICE, TOKEN_REVOKED, TOKEN_REUSE_DETECTED
        - 404 Not Found: NO_SESSION
        - 502 Bad Gateway: WORKOS_ERROR
        - 500 Internal Server Error: SERVER_ERROR
    """
    if token_client is None:
        raise ServerError(SERVER_CONFIGURATION_ERROR)

    command = RefreshAccessTokenCommand(
        user_id=identity["sub"] if identity else None,
        session_id=request.session_id,
        device_secret=request.device_secret,
    )

    use_case = RefreshAccessTokenUseCase(uow, token_client)
    result = await use_case.execute(command)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=SuccessResponse)
async def logout(
    identity: Optional[dict] = Depends(get_optional_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Logout

    Deletes the caller's stored session. Always succeeds, including for
    callers that are already logged out.
    """
    use_case = LogoutUseCase(uow)
    result = await use_case.execute(identity["sub"] if identity else None)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.get(
    "/status",
    status_code=status.HTTP_200_OK,
    response_model=SessionStatusResponse,
    response_model_exclude_none=True,
)
async def has_valid_session(
    identity: Optional[dict] = Depends(get_optional_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Has Valid Session

    Reports whether a refresh is worth attempting. Never contacts the
    identity provider.
    """
    use_case = HasValidSessionUseCase(uow)
    result = await use_case.execute(identity["sub"] if identity else None)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
