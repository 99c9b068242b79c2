"""Service test fixtures — fake user backend and an initialized store."""

import pytest

from userstore.services.user_session_store import UserSessionStore
from tests.services.fake_backend import FakeBackend, CallbackRecorder


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
async def store(backend):
    s = UserSessionStore(backend)
    await s.init()
    yield s
    await s.close()


@pytest.fixture
def callback():
    return CallbackRecorder()
