import asyncio
import itertools
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from dependencies import get_room_service
from exceptions import IdentityProviderError
from identity_provider import IssuedCredential
from main import app
from room_registry import RoomRegistry
from room_service import RoomSessionService


class FakeIdentityProvider:
    """Hands out predictable identities; can be told to fail"""

    def __init__(self):
        self._counter = itertools.count(1)
        self.fail = False
        self.issued = []

    async def issue(self, room_id, display_name, scopes):
        if self.fail:
            raise IdentityProviderError("identity service unavailable")
        n = next(self._counter)
        credential = IssuedCredential(identity=f"user-{n}", token=f"token-{n}")
        self.issued.append((room_id, display_name, tuple(scopes), credential))
        return credential

    async def issue_token(self, identity, room_id, scopes, display_name=None):
        # Yield like a real provider so concurrent callers interleave
        await asyncio.sleep(0)
        if self.fail:
            raise IdentityProviderError("identity service unavailable")
        token = f"join-token-{identity}"
        self.issued.append((room_id, display_name, tuple(scopes), token))
        return token


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def media_rooms():
    gateway = AsyncMock()
    gateway.create_room = AsyncMock()
    gateway.remove_participant = AsyncMock()
    gateway.delete_room = AsyncMock()
    return gateway


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def service(registry, identity_provider):
    return RoomSessionService(registry, identity_provider, ws_url="wss://livekit.test")


@pytest.fixture
def client(service):
    app.dependency_overrides[get_room_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
