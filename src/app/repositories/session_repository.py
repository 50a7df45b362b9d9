from abc import ABC, abstractmethod
from typing import Optional

from src.domain.entities import UserSession


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def find_by_user_id(self, user_id: str) -> Optional[UserSession]:
        """Get the session stored for a user"""
        pass

    @abstractmethod
    async def find_by_session_id(self, session_id: str) -> Optional[UserSession]:
        """Get the session stored under a provider session id"""
        pass

    @abstractmethod
    async def upsert(
        self,
        user_id: str,
        session_id: str,
        refresh_token: str,
        device_secret_hash: str,
        previous_refresh_token: Optional[str] = None,
    ) -> UserSession:
        """
        Create or patch the user's session.

        On patch, previous_refresh_token falls back to the replaced refresh
        token and rotated_at is only stamped when previous_refresh_token is
        given explicitly.
        """
        pass

    @abstractmethod
    async def store_initial(
        self,
        user_id: str,
        session_id: str,
        refresh_token: str,
        device_secret_hash: str,
    ) -> UserSession:
        """Create or overwrite the user's session after login, without rotation bookkeeping"""
        pass

    @abstractmethod
    async def delete_by_user_id(self, user_id: str) -> bool:
        """Delete the user's session. Returns True if a session existed."""
        pass

    @abstractmethod
    async def delete_by_session_id(self, session_id: str) -> bool:
        """Delete the session with this provider session id. Returns True if it existed."""
        pass
