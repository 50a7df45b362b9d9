"""
Unit tests for Refresh Access Token Use Case
"""

import pytest
from unittest.mock import AsyncMock

from src.app.services.device_secret import hash_device_secret
from src.app.services.token_exchange_client import (
    ExchangeMalformedSuccess,
    ExchangeProviderError,
    ExchangeReuseDetected,
    ExchangeRevoked,
    ExchangeSuccess,
)
from src.app.use_cases.sessions import RefreshAccessTokenCommand, RefreshAccessTokenUseCase
from src.domain.entities import UserSession
from tests.fixtures.fake_token_exchange_client import FakeTokenExchangeClient


def make_session(refresh_token: str = "old", device_secret: str = "d1") -> UserSession:
    return UserSession(
        user_id="u1",
        session_id="sid_1",
        refresh_token=refresh_token,
        device_secret_hash=hash_device_secret(device_secret),
    )


@pytest.mark.asyncio
async def test_no_session_for_user(mock_uow):
    """No session exists for user u1"""
    client = FakeTokenExchangeClient()

    use_case = RefreshAccessTokenUseCase(mock_uow, client)
    result = await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="d1")
    )

    assert result.is_err()
    assert result.error.code == "NO_SESSION"
    mock_uow.sessions.find_by_user_id.assert_called_once_with("u1")
    assert client.calls == []


@pytest.mark.asyncio
async def test_no_lookup_key_is_no_session(mock_uow):
    use_case = RefreshAccessTokenUseCase(mock_uow, FakeTokenExchangeClient())
    result = await use_case.execute(RefreshAccessTokenCommand(device_secret="d1"))

    assert result.is_err()
    assert result.error.code == "NO_SESSION"
    mock_uow.sessions.find_by_user_id.assert_not_called()
    mock_uow.sessions.find_by_session_id.assert_not_called()


@pytest.mark.asyncio
async def test_identity_takes_precedence_over_session_id(mock_uow):
    mock_uow.sessions.find_by_user_id = AsyncMock(return_value=make_session())

    use_case = RefreshAccessTokenUseCase(mock_uow, FakeTokenExchangeClient())
    result = await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", session_id="other_sid", device_secret="d1")
    )

    assert result.is_ok()
    mock_uow.sessions.find_by_user_id.assert_called_once_with("u1")
    mock_uow.sessions.find_by_session_id.assert_not_called()


@pytest.mark.asyncio
async def test_lookup_by_session_id_without_identity(mock_uow):
    mock_uow.sessions.find_by_session_id = AsyncMock(return_value=make_session())

    use_case = RefreshAccessTokenUseCase(mock_uow, FakeTokenExchangeClient())
    result = await use_case.execute(
        RefreshAccessTokenCommand(session_id="sid_1", device_secret="d1")
    )

    assert result.is_ok()
    mock_uow.sessions.find_by_session_id.assert_called_once_with("sid_1")


@pytest.mark.asyncio
async def test_wrong_device_secret_deletes_session(mock_uow):
    """Session bound to d1; caller supplies wrong secret"""
    mock_uow.sessions.find_by_user_id = AsyncMock(return_value=make_session())
    client = FakeTokenExchangeClient()

    use_case = RefreshAccessTokenUseCase(mock_uow, client)
    result = await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="wrong")
    )

    assert result.is_err()
    assert result.error.code == "INVALID_DEVICE"
    mock_uow.sessions.delete_by_user_id.assert_called_once_with("u1")
    mock_uow.commit.assert_called_once()
    assert client.calls == []


@pytest.mark.asyncio
async def test_missing_device_secret_deletes_session(mock_uow):
    mock_uow.sessions.find_by_user_id = AsyncMock(return_value=make_session())

    use_case = RefreshAccessTokenUseCase(mock_uow, FakeTokenExchangeClient())
    result = await use_case.execute(RefreshAccessTokenCommand(user_id="u1"))

    assert result.is_err()
    assert result.error.code == "INVALID_DEVICE"
    mock_uow.sessions.delete_by_user_id.assert_called_once_with("u1")


@pytest.mark.asyncio
async def test_session_without_device_hash_is_treated_as_mismatch(mock_uow):
    session = make_session()
    session.device_secret_hash = ""
    mock_uow.sessions.find_by_user_id = AsyncMock(return_value=session)

    use_case = RefreshAccessTokenUseCase(mock_uow, FakeTokenExchangeClient())
    result = await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="d1")
    )

    assert result.is_err()
    assert result.error.code == "INVALID_DEVICE"
    mock_uow.sessions.delete_by_user_id.assert_called_once_with("u1")


@pytest.mark.asyncio
async def test_successful_refresh_with_rotation(mock_uow):
    """Provider returns access_token abc and rotates old -> new"""
    mock_uow.sessions.find_by_user_id = AsyncMock(return_value=make_session("old"))
    client = FakeTokenExchangeClient(
        ExchangeSuccess(access_token="abc", new_refresh_token="new", expires_in=300)
    )

    use_case = RefreshAccessTokenUseCase(mock_uow, client)
    result = await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="d1")
    )

    assert result.is_ok()
    assert result.value.access_token == "abc"
    assert result.value.expires_in == 300
    assert client.calls == ["old"]
    mock_uow.sessions.upsert.assert_called_once_with(
        user_id="u1",
        session_id="sid_1",
        refresh_token="new",
        device_secret_hash=hash_device_secret("d1"),
        previous_refresh_token="old",
    )
    mock_uow.commit.assert_called_once()
    mock_uow.sessions.delete_by_user_id.assert_not_called()


@pytest.mark.asyncio
async def test_response_never_contains_refresh_token(mock_uow):
    mock_uow.sessions.find_by_user_id = AsyncMock(return_value=make_session("old"))
    client = FakeTokenExchangeClient(
        ExchangeSuccess(access_token="abc", new_refresh_token="new", expires_in=300)
    )

    use_case = RefreshAccessTokenUseCase(mock_uow, client)
    result = await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="d1")
    )

    assert result.value.model_dump(by_alias=True) == {"accessToken": "abc", "expiresIn": 300}


@pytest.mark.asyncio
@pytest.mark.parametrize("new_refresh_token", [None, "", "old"])
async def test_no_rotation_when_token_unchanged(mock_uow, new_refresh_token):
    mock_uow.sessions.find_by_user_id = AsyncMock(return_value=make_session("old"))
    client = FakeTokenExchangeClient(
        ExchangeSuccess(access_token="abc", new_refresh_token=new_refresh_token, expires_in=120)
    )

    use_case = RefreshAccessTokenUseCase(mock_uow, client)
    result = await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="d1")
    )

    assert result.is_ok()
    assert result.value.expires_in == 120
    mock_uow.sessions.upsert.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_revoked_token_deletes_session(mock_uow):
    """Provider answers invalid_grant"""
    mock_uow.sessions.find_by_user_id = AsyncMock(return_value=make_session())
    client = FakeTokenExchangeClient(ExchangeRevoked("Session has ended."))

    use_case = RefreshAccessTokenUseCase(mock_uow, client)
    result = await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="d1")
    )

    assert result.is_err()
    assert result.error.code == "TOKEN_REVOKED"
    mock_uow.sessions.delete_by_user_id.assert_called_once_with("u1")
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_reuse_detected_deletes_session(mock_uow):
    """Provider reports the refresh token was already used"""
    mock_uow.sessions.find_by_user_id = AsyncMock(return_value=make_session())
    client = FakeTokenExchangeClient(ExchangeReuseDetected("refresh token already used"))

    use_case = RefreshAccessTokenUseCase(mock_uow, client)
    result = await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="d1")
    )

    assert result.is_err()
    assert result.error.code == "TOKEN_REUSE_DETECTED"
    mock_uow.sessions.delete_by_user_id.assert_called_once_with("u1")
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "outcome",
    [ExchangeProviderError("Too many requests"), ExchangeMalformedSuccess()],
)
async def test_provider_failure_keeps_session(mock_uow, outcome):
    mock_uow.sessions.find_by_user_id = AsyncMock(return_value=make_session())

    use_case = RefreshAccessTokenUseCase(mock_uow, FakeTokenExchangeClient(outcome))
    result = await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="d1")
    )

    assert result.is_err()
    assert result.error.code == "WORKOS_ERROR"
    mock_uow.sessions.delete_by_user_id.assert_not_called()
    mock_uow.sessions.upsert.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_secrets_never_logged(mock_uow, caplog):
    caplog.set_level("DEBUG")
    mock_uow.sessions.find_by_user_id = AsyncMock(
        return_value=make_session("stored-refresh-token", "device-secret-value")
    )
    client = FakeTokenExchangeClient(ExchangeReuseDetected("refresh token already used"))

    use_case = RefreshAccessTokenUseCase(mock_uow, client)
    await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="device-secret-value")
    )
    await use_case.execute(
        RefreshAccessTokenCommand(user_id="u1", device_secret="wrong-device-secret")
    )

    assert "stored-refresh-token" not in caplog.text
    assert "device-secret-value" not in caplog.text
    assert "wrong-device-secret" not in caplog.text
