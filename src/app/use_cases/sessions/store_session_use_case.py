"""
Store Session Use Case

Takes over the provider refresh token right after login.
"""

import logging

from libs.result import Result, Return
from src.app.services.device_secret import hash_device_secret
from src.app.services.unit_of_work import UnitOfWork
from .dtos import StoreSessionCommand, SuccessResponse

logger = logging.getLogger(__name__)


class StoreSessionUseCase:
    """
    Use case for storing the refresh token handed over after login.

    Business Rules:
    - One session per user; re-login replaces the whole record
    - Only the device secret's digest is stored
    - The client discards its copy of the refresh token afterwards
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, command: StoreSessionCommand) -> Result[SuccessResponse]:
        async with self.uow:
            await self.uow.sessions.store_initial(
                user_id=command.user_id,
                session_id=command.session_id,
                refresh_token=command.refresh_token,
                device_secret_hash=hash_device_secret(command.device_secret),
            )
            await self.uow.commit()

        logger.info(f"Session stored for user {command.user_id}")
        return Return.ok(SuccessResponse())
