"""Infrastructure test fixtures — fresh in-memory SQLite database per test.

Invariants:
    - Every test gets its own engine and empty users table
    - Password hashing uses the minimum bcrypt cost to keep tests fast
"""

import pytest

from userstore.infrastructure.database import DatabaseSessionManager
from userstore.infrastructure.sql_user_backend import SqlUserBackend


class RecordingMailer:
    def __init__(self):
        self.sent = []

    async def send_reset(self, email, token):
        self.sent.append((email, token))


@pytest.fixture
async def db():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def sql_backend(db, mailer):
    return SqlUserBackend(db, mailer=mailer, password_hash_rounds=4)
