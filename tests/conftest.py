"""Root conftest — shared test configuration."""

import os

# Ensure tests never touch a real database file and hash passwords quickly
os.environ.setdefault("USERSTORE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("USERSTORE_PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("USERSTORE_LOG_FORMAT", "text")
