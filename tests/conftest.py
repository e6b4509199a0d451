from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from storyboard.api.deps import get_app_settings, get_db_session, get_ws_manager
from storyboard.config import Settings
from storyboard.main import create_app
from storyboard.models import project  # noqa: F401
from storyboard.schemas.ws import WsEvent


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        default_language="en",
    )


class StubWsManager:
    def __init__(self) -> None:
        self.events: list[tuple[int, dict]] = []

    async def send_event(self, project_id: int, event: dict) -> None:
        # 与真实管理器一致：事件类型必须合法
        WsEvent.model_validate(event)
        self.events.append((project_id, event))

    def types(self) -> list[str]:
        return [event["type"] for _, event in self.events]

    def last(self, event_type: str) -> dict:
        for _, event in reversed(self.events):
            if event["type"] == event_type:
                return event
        raise AssertionError(f"no {event_type} event in {self.types()}")


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_settings: Settings) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(test_settings.database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def ws_manager() -> StubWsManager:
    return StubWsManager()


@pytest_asyncio.fixture(scope="function")
async def app(test_session: AsyncSession, test_settings: Settings, ws_manager: StubWsManager):
    app = create_app()

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        yield test_session

    async def override_get_settings() -> Settings:
        return test_settings

    async def override_get_ws() -> StubWsManager:
        return ws_manager

    app.dependency_overrides[get_db_session] = override_get_session
    app.dependency_overrides[get_app_settings] = override_get_settings
    app.dependency_overrides[get_ws_manager] = override_get_ws
    return app


@pytest_asyncio.fixture(scope="function")
async def async_client(app):
    transport = ASGITransport(app=app)

    class _AsyncClientWithYield(AsyncClient):
        async def request(self, *args, **kwargs):
            loop = asyncio.get_running_loop()
            task = loop.create_task(super().request(*args, **kwargs))
            # ASGITransport + body-carrying requests can deadlock on this runtime
            # unless the request coroutine gets at least one scheduling slice.
            await asyncio.sleep(0.01)
            return await task

    async with _AsyncClientWithYield(transport=transport, base_url="http://test") as client:
        yield client


@asynccontextmanager
async def _no_lifespan(_: object):
    yield


@pytest.fixture()
def ws_client():
    app = create_app()
    app.router.lifespan_context = _no_lifespan
    return TestClient(app)
