"""Boundary Protocols — contracts between the session store and the user data backend.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Feed callbacks are plain functions taking (error, payload); exactly one is non-None,
      except that a None payload with no error means "absent"

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO;
      subscriptions deliver the current snapshot before `listen_*` returns
"""

from collections.abc import Callable
from typing import Protocol

from userstore.core.domain_types import UserId
from userstore.core.profiles import (
    Credentials, FullUser, PasswordResetResult, PublicProfile, UserDataByPrivacy,
)


CurrentUserCallback = Callable[[Exception | None, UserDataByPrivacy | None], None]
PublicProfileCallback = Callable[[Exception | None, PublicProfile | None], None]


class Subscription(Protocol):
    """Handle to a live feed registration."""
    def unsubscribe(self) -> None: ...


class UserBackend(Protocol):
    """Contract for the remote user-data service, implemented by shell."""
    async def listen_to_current_user(
        self, callback: CurrentUserCallback,
    ) -> Subscription: ...
    async def listen_to_user(
        self, user_id: UserId, callback: PublicProfileCallback,
    ) -> Subscription: ...
    async def login(self, credentials: Credentials) -> UserDataByPrivacy: ...
    async def logout(self, user: FullUser) -> None: ...
    async def create_user(self, credentials: Credentials) -> UserDataByPrivacy: ...
    async def save_to_users_collection(
        self, user_id: UserId, document: dict,
    ) -> None: ...
    async def send_password_reset_email(self, email: str) -> PasswordResetResult: ...


class PasswordResetMailer(Protocol):
    """Contract for delivering password reset tokens, implemented by shell."""
    async def send_reset(self, email: str, token: str) -> None: ...
