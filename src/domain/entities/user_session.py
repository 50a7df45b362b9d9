"""
UserSession Entity

Stores the identity provider refresh token on behalf of a device.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel


class UserSession(SQLModel, table=True):
    """
    UserSession entity - one stored provider session per user.

    Business Rules:
    - At most one row per user_id and one per session_id (unique indexes)
    - refresh_token never leaves the server after the login handoff
    - device_secret_hash binds the refresh token to the originating device
    - previous_refresh_token is recorded on rotation, never re-validated here
    - No local expiry; the identity provider decides token validity
    """

    __tablename__ = "user_sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: str = Field(nullable=False, unique=True, index=True)
    session_id: str = Field(nullable=False, unique=True, index=True)

    refresh_token: str = Field(nullable=False)
    previous_refresh_token: Optional[str] = Field(default=None)
    device_secret_hash: str = Field(max_length=64)  # SHA-256 hex digest

    # Timestamps
    rotated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    def __repr__(self) -> str:
        # refresh tokens stay out of reprs so they never reach logs
        return (
            f"UserSession(id={self.id!s}, user_id={self.user_id!r}, "
            f"session_id={self.session_id!r}, rotated_at={self.rotated_at!r})"
        )

    __str__ = __repr__
