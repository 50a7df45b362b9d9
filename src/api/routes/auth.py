import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from src.api.error import ERROR_STATUS_CODES
from src.app.services.token_exchange_client import ITokenExchangeClient
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.sessions import (
    RefreshAccessTokenCommand,
    RefreshAccessTokenResponse,
    RefreshAccessTokenUseCase,
)
from src.depends import get_token_exchange_client, get_unit_of_work

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "code": code})


def _non_empty_string(value) -> bool:
    return isinstance(value, str) and len(value) > 0


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=RefreshAccessTokenResponse,
)
async def refresh(
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_client: Optional[ITokenExchangeClient] = Depends(get_token_exchange_client),
):
    """
    Refresh Access Token (unauthenticated)

    For callers whose access token is already unusable: the stored session
    is located by sessionId and unlocked by the device secret.

    Request body: {"sessionId": str, "deviceSecret": str}

    Returns:
        - 200 OK: {"accessToken", "expiresIn"}
        - 400 Bad Request: INVALID_REQUEST (missing or malformed sessionId)
        - 401 Unauthorized: INVALID_DEVICE, TOKEN_REVOKED, TOKEN_REUSE_DETECTED
        - 404 Not Found: NO_SESSION
        - 502 Bad Gateway: WORKOS_ERROR
        - 500 Internal Server Error: SERVER_ERROR
    """
    try:
        try:
            body = await request.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            return error_response(
                status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST", "Request body must be a JSON object"
            )

        session_id = body.get("sessionId")
        device_secret = body.get("deviceSecret")

        if not _non_empty_string(session_id):
            return error_response(
                status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST", "sessionId is required"
            )

        if not _non_empty_string(device_secret):
            return error_response(
                status.HTTP_401_UNAUTHORIZED, "INVALID_DEVICE", "deviceSecret is required"
            )

        if token_client is None:
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR, "SERVER_ERROR", "Server configuration error"
            )

        command = RefreshAccessTokenCommand(session_id=session_id, device_secret=device_secret)
        use_case = RefreshAccessTokenUseCase(uow, token_client)
        result = await use_case.execute(command)

        if result.is_err():
            error = result.error
            status_code = ERROR_STATUS_CODES.get(
                error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
            )
            logger.warning(f"Token refresh failed: {error.code}")
            return error_response(status_code, error.code, error.message)

        return JSONResponse(
            status_code=status.HTTP_200_OK, content=result.value.model_dump(by_alias=True)
        )
    except Exception:
        logger.exception("Token refresh error")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "SERVER_ERROR", "Internal server error"
        )
