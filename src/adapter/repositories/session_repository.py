from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import UserSession


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_user_id(self, user_id: str) -> Optional[UserSession]:
        """Get the session stored for a user"""
        stmt = select(UserSession).where(UserSession.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_session_id(self, session_id: str) -> Optional[UserSession]:
        """Get the session stored under a provider session id"""
        stmt = select(UserSession).where(UserSession.session_id == session_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(
        self,
        user_id: str,
        session_id: str,
        refresh_token: str,
        device_secret_hash: str,
        previous_refresh_token: Optional[str] = None,
    ) -> UserSession:
        """Create or patch the user's session, recording rotation bookkeeping"""
        existing = await self.find_by_user_id(user_id)
        now = datetime.utcnow()

        if existing is None:
            return await self._insert(
                user_id, session_id, refresh_token, device_secret_hash, now
            )

        replaced_token = existing.refresh_token
        existing.refresh_token = refresh_token
        existing.session_id = session_id
        existing.device_secret_hash = device_secret_hash
        if previous_refresh_token is not None:
            existing.previous_refresh_token = previous_refresh_token
            existing.rotated_at = now
        else:
            existing.previous_refresh_token = replaced_token
        existing.updated_at = now
        return await self._save(existing)

    async def store_initial(
        self,
        user_id: str,
        session_id: str,
        refresh_token: str,
        device_secret_hash: str,
    ) -> UserSession:
        """Create or overwrite the user's session after login"""
        existing = await self.find_by_user_id(user_id)
        now = datetime.utcnow()

        if existing is None:
            return await self._insert(
                user_id, session_id, refresh_token, device_secret_hash, now
            )

        existing.refresh_token = refresh_token
        existing.session_id = session_id
        existing.device_secret_hash = device_secret_hash
        existing.updated_at = now
        return await self._save(existing)

    async def delete_by_user_id(self, user_id: str) -> bool:
        """Delete the user's session if present"""
        stmt = delete(UserSession).where(UserSession.user_id == user_id)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def delete_by_session_id(self, session_id: str) -> bool:
        """Delete the session with this provider session id if present"""
        stmt = delete(UserSession).where(UserSession.session_id == session_id)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def _insert(
        self,
        user_id: str,
        session_id: str,
        refresh_token: str,
        device_secret_hash: str,
        now: datetime,
    ) -> UserSession:
        session_obj = UserSession(
            user_id=user_id,
            session_id=session_id,
            refresh_token=refresh_token,
            device_secret_hash=device_secret_hash,
            created_at=now,
            updated_at=now,
        )
        return await self._save(session_obj)

    async def _save(self, session_obj: UserSession) -> UserSession:
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj
