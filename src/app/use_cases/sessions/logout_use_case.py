"""
Logout Use Case
"""

import logging
from typing import Optional

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from .dtos import SuccessResponse

logger = logging.getLogger(__name__)


class LogoutUseCase:
    """
    Deletes the caller's stored session.

    Idempotent: callers without identity or without a session still succeed.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, user_id: Optional[str]) -> Result[SuccessResponse]:
        if not user_id:
            return Return.ok(SuccessResponse())

        async with self.uow:
            deleted = await self.uow.sessions.delete_by_user_id(user_id)
            await self.uow.commit()

        if deleted:
            logger.info(f"Session deleted on logout for user {user_id}")
        return Return.ok(SuccessResponse())
