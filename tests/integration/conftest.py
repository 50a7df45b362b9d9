import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain.entities  # noqa: F401
from src.adapter.repositories.session_repository import SessionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.device_secret import hash_device_secret
from src.depends import get_token_exchange_client, get_unit_of_work
from tests.fixtures.access_tokens import create_access_token
from tests.fixtures.fake_token_exchange_client import FakeTokenExchangeClient


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def repository(db_session):
    return SessionRepository(db_session)


@pytest_asyncio.fixture
def token_client():
    return FakeTokenExchangeClient()


@pytest_asyncio.fixture
async def stored_session(db_session):
    """Session for user u1 bound to device secret d1 with refresh token old"""
    repo = SessionRepository(db_session)
    await repo.store_initial(
        user_id="u1",
        session_id="sid_1",
        refresh_token="old",
        device_secret_hash=hash_device_secret("d1"),
    )
    await db_session.commit()


@pytest_asyncio.fixture
def auth_headers():
    token = create_access_token("u1", "sid_1")
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
def app(db_session, token_client):
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_token_exchange_client] = lambda: token_client
    return app


@pytest_asyncio.fixture
async def client(app):
    from httpx import ASGITransport

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
