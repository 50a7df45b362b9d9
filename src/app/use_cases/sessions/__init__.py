"""
Session Use Cases

Storage, refresh and teardown of server-side provider sessions.
"""

from .store_session_use_case import StoreSessionUseCase
from .refresh_access_token_use_case import RefreshAccessTokenUseCase
from .logout_use_case import LogoutUseCase
from .has_valid_session_use_case import HasValidSessionUseCase
from .dtos import (
    StoreSessionCommand,
    RefreshAccessTokenCommand,
    RefreshAccessTokenResponse,
    SessionStatusResponse,
    SuccessResponse,
)

__all__ = [
    # Use Cases
    "StoreSessionUseCase",
    "RefreshAccessTokenUseCase",
    "LogoutUseCase",
    "HasValidSessionUseCase",
    # DTOs - Commands
    "StoreSessionCommand",
    "RefreshAccessTokenCommand",
    # DTOs - Responses
    "RefreshAccessTokenResponse",
    "SessionStatusResponse",
    "SuccessResponse",
]
