from typing import Optional

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from .dtos import SessionStatusResponse


class HasValidSessionUseCase:
    """Reports whether a stored session exists, without contacting the provider"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, user_id: Optional[str]) -> Result[SessionStatusResponse]:
        if not user_id:
            return Return.ok(SessionStatusResponse(has_session=False))

        async with self.uow:
            session = await self.uow.sessions.find_by_user_id(user_id)
            if session is None:
                return Return.ok(SessionStatusResponse(has_session=False))
            return Return.ok(
                SessionStatusResponse(has_session=True, session_id=session.session_id)
            )
