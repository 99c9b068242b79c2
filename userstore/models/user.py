"""User ORM — one row per account, holding the user document split by privacy tier.

Invariants:
    - id is a UUID string primary key (client-visible user id)
    - email is unique and stored lower-cased
    - public_info / private_info / server_info are JSON documents, replaced wholesale
    - password_hash and reset_token_hash never leave the backend

Design Decisions:
    - JSON columns per tier: the document shape belongs to the application, not the schema
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from userstore.db.base import Base


class User(Base):
    """User document: public, private and server tiers in one row."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
    )
    email: Mapped[str] = mapped_column(
        String(320), nullable=False, unique=True, index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    public_info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    private_info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    server_info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    reset_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reset_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
