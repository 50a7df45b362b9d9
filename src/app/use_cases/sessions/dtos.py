"""
Session Use Case DTOs (Data Transfer Objects)

Command/Response classes for the stored-session domain.
Responses serialize with camelCase aliases, matching what clients send.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Command DTOs
# ============================================================================


class StoreSessionCommand(BaseModel):
    """Post-login handoff of the provider refresh token"""

    user_id: str
    session_id: str
    refresh_token: str = Field(repr=False)
    device_secret: str = Field(repr=False)


class RefreshAccessTokenCommand(BaseModel):
    """
    Refresh intent.

    user_id is set when the caller carries a verified identity; otherwise the
    session is looked up by session_id.
    """

    user_id: Optional[str] = None
    session_id: Optional[str] = None
    device_secret: Optional[str] = Field(default=None, repr=False)


# ============================================================================
# Response DTOs
# ============================================================================


class RefreshAccessTokenResponse(CamelModel):
    """Fresh access token; the stored refresh token is never included"""

    access_token: str
    expires_in: int


class SessionStatusResponse(CamelModel):
    """Whether a refresh is worth attempting for the caller"""

    has_session: bool
    session_id: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool = True
