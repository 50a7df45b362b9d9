import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.sessions = MagicMock()
    uow.sessions.find_by_user_id = AsyncMock(return_value=None)
    uow.sessions.find_by_session_id = AsyncMock(return_value=None)
    uow.sessions.upsert = AsyncMock()
    uow.sessions.store_initial = AsyncMock()
    uow.sessions.delete_by_user_id = AsyncMock(return_value=True)
    uow.sessions.delete_by_session_id = AsyncMock(return_value=True)
    return uow
