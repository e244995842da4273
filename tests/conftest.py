from datetime import datetime, timedelta, timezone
from typing import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from verisponsor.config import get_settings
from verisponsor.main import app
from verisponsor.repositories.memory import InMemoryStore
from verisponsor.services.chat_service import ChatService
from verisponsor.services.user_service import UserService
from verisponsor.utils import realtime_bus, websocket_manager
from verisponsor.utils.dependencies import get_chat_service, get_user_service
from verisponsor.utils.locks import ConversationLocks


class FakeClock:

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def memory_settings(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setattr(realtime_bus, "_bus", None)
    monkeypatch.setattr(websocket_manager, "_manager", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 4, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def chat_service(store, clock) -> ChatService:
    return ChatService(store.messages, store.conversations, store.users, locks=ConversationLocks(), clock=clock)


@pytest.fixture
def user_service(store) -> UserService:
    return UserService(store.users)


@pytest.fixture
def api_app(chat_service, user_service):
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    app.dependency_overrides[get_user_service] = lambda: user_service
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(api_app) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=api_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def identity_headers():
    def _headers(user_id: str, role: str = "youtuber", verified: bool = True) -> dict:
        return {"X-User-Id": user_id, "X-User-Role": role, "X-User-Verified": "true" if verified else "false"}
    return _headers
