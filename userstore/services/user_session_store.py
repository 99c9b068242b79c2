"""User Session Store — session state, profile cache, and login/logout hooks over a user backend.

Invariants:
    - Exactly one current-user feed subscription per store (init() is idempotent)
    - Feed errors are logged and leave state unchanged
    - on_logout hooks receive the full user view as it was before clearing, once per
      session end (explicit logout or feed absence, whichever comes first)
    - logout() clears local state before awaiting the backend
    - on_login hooks fire once per establishment (no current-user profile cached beforehand)
    - Profile lookups are one-shot: the per-id subscription is released after first delivery
    - Backend errors on login/create_user reach the caller's callback unchanged

Design Decisions:
    - Explicit construction with an injected backend; no module-level singleton
    - Change listeners replace framework reactivity: called after every state change
    - get_user_by_id() stays synchronous; the fetch runs as a tracked asyncio task
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from userstore.core.domain_types import UserId, SessionPhase, PrivacyTier, FeedEvent
from userstore.core.errors import CredentialsMissingError, ErrorContext
from userstore.core.profiles import (
    Credentials, EstablishedUser, FullUser, PasswordResetResult,
    PublicProfile, UserDataByPrivacy, coerce_credentials,
)
from userstore.core.repository_protocols import Subscription, UserBackend
from userstore.core.session_state import SessionState
from userstore.services.lifecycle_hooks import HookRegistry

logger = logging.getLogger(__name__)

ResultCallback = Callable[[Exception | None, Any], object]


class UserSessionStore:
    """Client-side store for the logged-in user and other users' public profiles."""

    def __init__(self, backend: UserBackend, state: SessionState | None = None):
        self._backend = backend
        self.state = state or SessionState()
        self._login_hooks: HookRegistry[EstablishedUser] = HookRegistry("on_login")
        self._logout_hooks: HookRegistry[FullUser] = HookRegistry("on_logout")
        self._change_listeners: HookRegistry["UserSessionStore"] = HookRegistry("on_change")
        self._feed: Subscription | None = None
        self._pending_fetches: dict[UserId, asyncio.Task] = {}

    # ─── Lifecycle ───────────────────────────────────────────────

    async def init(self) -> None:
        """Start listening to the current-user feed."""
        if self._feed is not None:
            return
        self._feed = await self._backend.listen_to_current_user(self._on_current_user)

    async def close(self) -> None:
        """Release the feed and cancel outstanding profile fetches."""
        if self._feed is not None:
            self._feed.unsubscribe()
            self._feed = None
        tasks = list(self._pending_fetches.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending_fetches.clear()

    def on_login(self, callback: Callable[[EstablishedUser], object]) -> None:
        """Run `callback(user)` when a session is established."""
        self._login_hooks.register(callback)

    def on_logout(self, callback: Callable[[FullUser], object]) -> None:
        """Run `callback(full_user)` when the current user's session ends."""
        self._logout_hooks.register(callback)

    def subscribe(
        self, listener: Callable[["UserSessionStore"], object],
    ) -> Callable[[], None]:
        """Call `listener(store)` after every state change. Returns an unsubscribe function."""
        self._change_listeners.register(listener)
        return lambda: self._change_listeners.remove(listener)

    # ─── Views ───────────────────────────────────────────────────

    @property
    def current_user_id(self) -> UserId | None:
        return self.state.current_user_id

    @property
    def current_public_profile(self) -> PublicProfile | None:
        return self.state.current_public_profile

    @property
    def current_full_user(self) -> FullUser:
        return self.state.full_user

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def profile_cache(self) -> Mapping[UserId, PublicProfile]:
        return MappingProxyType(self.state.profile_cache)

    def get_user_by_id(self, user_id: UserId) -> PublicProfile | None:
        """Cached public profile, or None after scheduling a fetch.

        Must be called from a running event loop. The fetched profile becomes
        visible to later calls (and to change listeners) once it arrives.
        """
        profile = self.state.profile_cache.get(user_id)
        if profile is None and user_id not in self._pending_fetches:
            task = asyncio.get_running_loop().create_task(
                self._fetch_public_profile(user_id),
            )
            self._pending_fetches[user_id] = task
            task.add_done_callback(
                lambda t, uid=user_id: self._forget_fetch(uid, t),
            )
        return profile

    def search_from_local_users_by_field(
        self, field: str, query: str,
    ) -> list[PublicProfile]:
        """Search loaded profiles only; never queries the backend."""
        return self.state.search_by_field(field, query)

    # ─── Mutations ───────────────────────────────────────────────

    async def login(
        self, credentials: Credentials | Mapping[str, Any], callback: ResultCallback,
    ) -> None:
        """Forward credentials to the backend; the feed reports the new user."""
        try:
            result = await self._backend.login(coerce_credentials(credentials))
        except Exception as e:
            logger.info("Login rejected: %s", e,
                        extra={"operation": "login", "error_code": getattr(e, "code", None)})
            callback(e, None)
            return
        callback(None, result)

    async def logout(self) -> None:
        """Clear the current user locally, run logout hooks, then tell the backend."""
        user = self.state.full_user
        self.state.clear_current_user()
        self._notify_change()
        if user.id is not None:
            logger.info("Session ended", extra={"operation": "logout", "user_id": user.id,
                                                "phase": SessionPhase.UNAUTHENTICATED.value})
            self._logout_hooks.dispatch(user)
        await self._backend.logout(user)

    async def create_user(
        self, credentials: Credentials | Mapping[str, Any] | None, callback: ResultCallback,
    ) -> None:
        """Create an account and cache its data before calling back."""
        creds = coerce_credentials(credentials)
        if not creds.is_complete:
            callback(CredentialsMissingError(ErrorContext(operation="create_user")), None)
            return
        try:
            data = await self._backend.create_user(creds)
        except Exception as e:
            logger.info("Account creation rejected: %s", e,
                        extra={"operation": "create_user", "error_code": getattr(e, "code", None)})
            callback(e, None)
            return
        self._save_current_user_locally(data)
        callback(None, data)

    async def send_password_reset_email(self, email: str) -> PasswordResetResult:
        return await self._backend.send_password_reset_email(email)

    async def save_profile(self, profile: PublicProfile) -> None:
        """Push a profile's public fields to the backend and re-cache it."""
        if not profile.id:
            raise ValueError("Cannot save a profile without an id")
        user_id = UserId(profile.id)
        await self._backend.save_to_users_collection(
            user_id, {PrivacyTier.PUBLIC.value: profile.public_fields()},
        )
        self.state.cache_public_profile(user_id, profile)
        self._notify_change()

    # ─── Feed handling ───────────────────────────────────────────

    def _on_current_user(
        self, error: Exception | None,
        data: UserDataByPrivacy | Mapping[str, Any] | None,
    ) -> None:
        if error is not None:
            logger.warning(
                "Current-user feed error: %s", error,
                extra={"event": FeedEvent.ERROR.value,
                       "error_code": getattr(error, "code", None)},
            )
            return
        if data is None:
            self._handle_absence()
            return
        self._save_current_user_locally(data)

    def _handle_absence(self) -> None:
        previous = self.state.current_user_id
        if previous is not None:
            logger.info("Session ended", extra={"event": FeedEvent.ABSENT.value,
                                                "user_id": previous,
                                                "phase": SessionPhase.UNAUTHENTICATED.value})
            self._logout_hooks.dispatch(self.state.full_user)
        self.state.clear_current_user()
        self._notify_change()

    def _save_current_user_locally(
        self, data: UserDataByPrivacy | Mapping[str, Any],
    ) -> None:
        if not isinstance(data, UserDataByPrivacy):
            data = UserDataByPrivacy.model_validate(dict(data))
        established = self.state.apply_user_data(data)
        user_id = data.user_id
        if established and user_id is not None:
            logger.info("Session established", extra={"event": FeedEvent.DATA.value,
                                                      "user_id": user_id,
                                                      "phase": SessionPhase.AUTHENTICATED.value})
            self._login_hooks.dispatch(EstablishedUser(
                id=user_id, public_info=self.state.profile_cache[user_id],
            ))
        self._notify_change()

    # ─── Profile fetches ─────────────────────────────────────────

    async def _fetch_public_profile(self, user_id: UserId) -> None:
        delivered: asyncio.Future = asyncio.get_running_loop().create_future()

        def on_profile(error: Exception | None, profile: PublicProfile | None) -> None:
            if delivered.done():
                return
            if error is not None:
                delivered.set_exception(error)
            else:
                delivered.set_result(profile)

        try:
            subscription = await self._backend.listen_to_user(user_id, on_profile)
        except Exception as e:
            logger.warning("Profile subscription for %s failed: %s", user_id, e,
                           extra={"user_id": user_id, "operation": "listen_to_user"})
            return
        try:
            profile = await delivered
        except Exception as e:
            logger.warning("Profile fetch for %s failed: %s", user_id, e,
                           extra={"user_id": user_id, "operation": "listen_to_user"})
            return
        finally:
            subscription.unsubscribe()

        if profile is None:
            logger.debug("No public profile for %s", user_id, extra={"user_id": user_id})
            return
        self.state.cache_public_profile(user_id, profile)
        self._notify_change()

    def _forget_fetch(self, user_id: UserId, task: asyncio.Task) -> None:
        if self._pending_fetches.get(user_id) is task:
            del self._pending_fetches[user_id]

    def _notify_change(self) -> None:
        self._change_listeners.dispatch(self)
