from fastapi import status
from libs.result import Error

# Use case error code -> HTTP status, shared by both refresh surfaces
ERROR_STATUS_CODES = {
    "INVALID_REQUEST": status.HTTP_400_BAD_REQUEST,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "INVALID_DEVICE": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_REVOKED": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_REUSE_DETECTED": status.HTTP_401_UNAUTHORIZED,
    "NO_SESSION": status.HTTP_404_NOT_FOUND,
    "WORKOS_ERROR": status.HTTP_502_BAD_GATEWAY,
}

SERVER_CONFIGURATION_ERROR = Error("SERVER_ERROR", "Server configuration error")


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


def to_http_error(error: Error) -> Exception:
    """Wrap a use case error in the API exception matching its code"""
    status_code = ERROR_STATUS_CODES.get(error.code)
    if status_code is None:
        return ServerError(error)
    return ClientError(error, status_code=status_code)
