"""SQL User Backend — UserBackend over a relational users table with in-process live feeds.

Invariants:
    - One signed-in user per backend instance (the client's auth session)
    - Signing in a different user first signs out the previous one (offline + absence)
    - Every write to a user document is published to that user's listeners, and to the
      current-user listeners when it is the signed-in user
    - listen_* deliver the current snapshot before returning
    - A raising listener is logged and never blocks delivery to the others
    - Reset tokens are stored hashed with an expiry; the plain token only reaches the mailer

Design Decisions:
    - Live feeds are in-process listener lists: the feed contract is what the store needs,
      not a network transport
    - Emails are compared lower-cased and stripped
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from userstore.core.domain_types import UserId, PrivacyTier
from userstore.core.errors import (
    BackendOperationError, CredentialsMissingError, EmailAlreadyRegisteredError,
    ErrorContext, InvalidCredentialsError, ResourceNotFoundError, UserStoreError,
)
from userstore.core.profiles import (
    Credentials, FullUser, PasswordResetResult, PrivateProfile,
    PublicProfile, ServerProfile, UserDataByPrivacy,
)
from userstore.core.repository_protocols import (
    CurrentUserCallback, PasswordResetMailer, PublicProfileCallback,
)
from userstore.infrastructure.database import DatabaseSessionManager
from userstore.infrastructure.passwords import (
    check_password, generate_reset_token, hash_password, hash_token,
)
from userstore.models.user import User

logger = logging.getLogger(__name__)


class LoggingPasswordResetMailer:
    """Default mailer: records that a reset was issued (never the token)."""

    async def send_reset(self, email: str, token: str) -> None:
        logger.info("Password reset issued for %s", email,
                    extra={"operation": "send_password_reset_email"})


class FeedSubscription:
    """Removes one callback from a listener list; safe to call twice."""

    def __init__(self, remove: Callable[[], None]):
        self._remove: Callable[[], None] | None = remove

    @property
    def active(self) -> bool:
        return self._remove is not None

    def unsubscribe(self) -> None:
        if self._remove is not None:
            self._remove()
            self._remove = None


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _to_user_data(row: User) -> UserDataByPrivacy:
    return UserDataByPrivacy(
        id=row.id,
        public_info=PublicProfile.model_validate(row.public_info or {}),
        private_info=PrivateProfile.model_validate(row.private_info or {}),
        server_info=ServerProfile.model_validate(row.server_info or {}),
    )


class SqlUserBackend:
    """User-data backend persisted through DatabaseSessionManager."""

    def __init__(
        self,
        db: DatabaseSessionManager,
        mailer: PasswordResetMailer | None = None,
        password_hash_rounds: int = 12,
        reset_token_ttl_seconds: int = 3600,
    ):
        self._db = db
        self._mailer = mailer or LoggingPasswordResetMailer()
        self._hash_rounds = password_hash_rounds
        self._reset_ttl = timedelta(seconds=reset_token_ttl_seconds)
        self._current_user_id: UserId | None = None
        self._current_user_listeners: list[CurrentUserCallback] = []
        self._user_listeners: dict[UserId, list[PublicProfileCallback]] = {}

    @property
    def current_user_id(self) -> UserId | None:
        return self._current_user_id

    # ─── Feeds ───────────────────────────────────────────────────

    async def listen_to_current_user(
        self, callback: CurrentUserCallback,
    ) -> FeedSubscription:
        self._current_user_listeners.append(callback)
        subscription = FeedSubscription(
            lambda: self._current_user_listeners.remove(callback),
        )
        try:
            data = await self._load_current_user_data()
        except UserStoreError as e:
            _deliver(callback, e, None)
        else:
            _deliver(callback, None, data)
        return subscription

    async def listen_to_user(
        self, user_id: UserId, callback: PublicProfileCallback,
    ) -> FeedSubscription:
        listeners = self._user_listeners.setdefault(user_id, [])
        listeners.append(callback)
        subscription = FeedSubscription(
            lambda: self._remove_user_listener(user_id, callback),
        )
        try:
            async with self._db.session() as db:
                row = await db.get(User, user_id)
        except UserStoreError as e:
            _deliver(callback, e, None)
        else:
            profile = _to_user_data(row).public_info if row is not None else None
            _deliver(callback, None, profile)
        return subscription

    # ─── Account operations ──────────────────────────────────────

    async def login(self, credentials: Credentials) -> UserDataByPrivacy:
        email = _normalize_email(credentials.email)
        async with self._db.session() as db:
            row = await self._get_by_email(db, email)
            if row is None or not check_password(credentials.password or "", row.password_hash):
                raise InvalidCredentialsError(ErrorContext(operation="login"))
            row.public_info = {**(row.public_info or {}), "isOnline": True}
            await db.commit()
            data = _to_user_data(row)

        await self._switch_current_user(UserId(row.id))
        logger.info("User signed in", extra={"user_id": row.id, "operation": "login"})
        self._publish(data)
        return data

    async def logout(self, user: FullUser) -> None:
        user_id = user.id or self._current_user_id
        if user_id is None:
            return
        await self._sign_out(user_id)

    async def create_user(self, credentials: Credentials) -> UserDataByPrivacy:
        if not credentials.is_complete:
            raise CredentialsMissingError(ErrorContext(operation="create_user"))
        email = _normalize_email(credentials.email)
        async with self._db.session() as db:
            if await self._get_by_email(db, email) is not None:
                raise EmailAlreadyRegisteredError(
                    email, ErrorContext(operation="create_user"),
                )
            row = User(
                email=email,
                password_hash=hash_password(credentials.password, self._hash_rounds),
                public_info={"email": email, "isOnline": True},
                private_info={},
                server_info={"createdAt": datetime.now(timezone.utc).isoformat()},
            )
            db.add(row)
            await db.commit()
            data = _to_user_data(row)

        await self._switch_current_user(UserId(row.id))
        logger.info("User created", extra={"user_id": row.id, "operation": "create_user"})
        self._publish(data)
        return data

    async def save_to_users_collection(self, user_id: UserId, document: dict) -> None:
        public = document.get(PrivacyTier.PUBLIC.value)
        if public is None:
            raise BackendOperationError(
                "document has no public_info", "save_to_users_collection",
            )
        async with self._db.session() as db:
            row = await db.get(User, user_id)
            if row is None:
                raise ResourceNotFoundError(
                    "User", user_id, ErrorContext(operation="save_to_users_collection"),
                )
            row.public_info = dict(public)
            await db.commit()
            data = _to_user_data(row)
        self._publish(data)

    async def send_password_reset_email(self, email: str) -> PasswordResetResult:
        normalized = _normalize_email(email)
        token = generate_reset_token()
        expires_at = datetime.now(timezone.utc) + self._reset_ttl
        async with self._db.session() as db:
            row = await self._get_by_email(db, normalized)
            if row is None:
                raise ResourceNotFoundError(
                    "Account", normalized,
                    ErrorContext(operation="send_password_reset_email"),
                )
            row.reset_token_hash = hash_token(token)
            row.reset_token_expires_at = expires_at
            await db.commit()
        await self._mailer.send_reset(normalized, token)
        return PasswordResetResult(email=normalized, sent=True, expires_at=expires_at)

    async def confirm_password_reset(
        self, email: str, token: str, new_password: str,
    ) -> None:
        """Replace the password if `token` is the live reset token for `email`."""
        if not new_password:
            raise CredentialsMissingError(ErrorContext(operation="confirm_password_reset"))
        normalized = _normalize_email(email)
        async with self._db.session() as db:
            row = await self._get_by_email(db, normalized)
            if (
                row is None
                or row.reset_token_hash is None
                or row.reset_token_expires_at is None
                or row.reset_token_hash != hash_token(token)
                or _as_utc(row.reset_token_expires_at) <= datetime.now(timezone.utc)
            ):
                raise InvalidCredentialsError(
                    ErrorContext(operation="confirm_password_reset"),
                )
            row.password_hash = hash_password(new_password, self._hash_rounds)
            row.reset_token_hash = None
            row.reset_token_expires_at = None
            await db.commit()
        logger.info("Password reset completed", extra={"user_id": row.id,
                                                        "operation": "confirm_password_reset"})

    # ─── Internals ───────────────────────────────────────────────

    async def _get_by_email(self, db, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _sign_out(self, user_id: UserId) -> None:
        async with self._db.session() as db:
            row = await db.get(User, user_id)
            if row is not None:
                row.public_info = {**(row.public_info or {}), "isOnline": False}
                await db.commit()
                data = _to_user_data(row)
            else:
                data = None

        if user_id == self._current_user_id:
            self._current_user_id = None
            logger.info("User signed out", extra={"user_id": user_id, "operation": "logout"})
            self._publish_current(None)
        if data is not None:
            self._publish_user(user_id, data.public_info)

    async def _switch_current_user(self, user_id: UserId) -> None:
        """Make user_id current, signing out a different user who still holds the session."""
        previous = self._current_user_id
        if previous is not None and previous != user_id:
            await self._sign_out(previous)
        self._current_user_id = user_id

    async def _load_current_user_data(self) -> UserDataByPrivacy | None:
        if self._current_user_id is None:
            return None
        async with self._db.session() as db:
            row = await db.get(User, self._current_user_id)
        return _to_user_data(row) if row is not None else None

    def _remove_user_listener(
        self, user_id: UserId, callback: PublicProfileCallback,
    ) -> None:
        listeners = self._user_listeners.get(user_id, [])
        if callback in listeners:
            listeners.remove(callback)
        if not listeners:
            self._user_listeners.pop(user_id, None)

    def _publish(self, data: UserDataByPrivacy) -> None:
        user_id = data.user_id
        if user_id is not None and user_id == self._current_user_id:
            self._publish_current(data)
        if user_id is not None:
            self._publish_user(user_id, data.public_info)

    def _publish_current(self, data: UserDataByPrivacy | None) -> None:
        for callback in list(self._current_user_listeners):
            _deliver(callback, None, data)

    def _publish_user(self, user_id: UserId, profile: PublicProfile | None) -> None:
        for callback in list(self._user_listeners.get(user_id, [])):
            _deliver(callback, None, profile)


def _deliver(callback: Callable, error: Exception | None, payload: object) -> None:
    try:
        callback(error, payload)
    except Exception as e:
        logger.error("Feed listener %r failed: %s",
                     getattr(callback, "__name__", callback), e, exc_info=True)
