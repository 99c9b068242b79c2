"""User Store Entry Point — wires settings, logging, database and backend into a running store.

Invariants:
    - Tables exist before the store subscribes to the current-user feed
    - On exit the store is closed before the engine is disposed

Design Decisions:
    - Async context manager over module-level singletons: the embedding application owns
      the store's lifetime
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from userstore.config import Settings, get_settings
from userstore.core.repository_protocols import PasswordResetMailer
from userstore.infrastructure.database import DatabaseSessionManager
from userstore.infrastructure.observability import setup_logging
from userstore.infrastructure.sql_user_backend import SqlUserBackend
from userstore.services.user_session_store import UserSessionStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_user_store(
    settings: Settings | None = None,
    mailer: PasswordResetMailer | None = None,
    configure_logging: bool = True,
) -> AsyncIterator[UserSessionStore]:
    """Startup/shutdown lifecycle for a SQL-backed UserSessionStore."""
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_format)
    db = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    await db.create_all()
    backend = SqlUserBackend(
        db,
        mailer=mailer,
        password_hash_rounds=settings.password_hash_rounds,
        reset_token_ttl_seconds=settings.password_reset_token_ttl_seconds,
    )
    store = UserSessionStore(backend)
    await store.init()
    logger.info("User store started")
    try:
        yield store
    finally:
        await store.close()
        await db.dispose()
        logger.info("User store shut down")
