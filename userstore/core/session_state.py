"""Session State — in-memory container for the local user session and profile cache.

Invariants:
    - current_user_id is set only when the cached profile for it arrived with is_online=True
    - Every profile in profile_cache is normalized and keyed by its own id
    - At most one profile object per id (later saves replace earlier ones)
    - private_info / server_info are meaningful only while current_user_id is set,
      and are cleared with it on logout

Design Decisions:
    - Dataclass with computed properties: pure, deterministic, testable without mocks
    - apply_user_data() reports whether the session was just established; the caller
      (the store) decides which hooks to run
"""

from dataclasses import dataclass, field

from userstore.core.domain_types import UserId, SessionPhase
from userstore.core.profiles import (
    PublicProfile, PrivateProfile, ServerProfile,
    UserDataByPrivacy, FullUser, normalize_public_profile,
)


@dataclass
class SessionState:
    """Per-process session state. Pure dataclass, no IO."""

    # Id of the authenticated user (None when logged out / never logged in)
    current_user_id: UserId | None = None

    # Public info of every user loaded so far, in insertion order
    profile_cache: dict[UserId, PublicProfile] = field(default_factory=dict)

    # Current user only
    private_info: PrivateProfile | None = None
    server_info: ServerProfile | None = None

    @property
    def current_public_profile(self) -> PublicProfile | None:
        if self.current_user_id is None:
            return None
        return self.profile_cache.get(self.current_user_id)

    @property
    def full_user(self) -> FullUser:
        return FullUser(
            id=self.current_user_id,
            public=self.current_public_profile,
            private=self.private_info,
            server=self.server_info,
        )

    @property
    def phase(self) -> SessionPhase:
        if self.current_user_id is None:
            return SessionPhase.UNAUTHENTICATED
        return SessionPhase.AUTHENTICATED

    def cache_public_profile(
        self, user_id: UserId, data: PublicProfile | dict | None,
    ) -> PublicProfile | None:
        """Normalize and cache a public profile. None (unknown user) is ignored."""
        if data is None:
            return None
        profile = normalize_public_profile(user_id, data)
        self.profile_cache[user_id] = profile
        return profile

    def apply_user_data(self, data: UserDataByPrivacy) -> bool:
        """Apply a current-user payload. Returns True if this established the session.

        Whether a current-user profile was cached is read before the cache update;
        the session is established when there was none and this payload's public
        profile is online.
        """
        had_current_profile = self.current_public_profile is not None
        established = False
        user_id = data.user_id
        if data.public_info is not None and user_id is not None:
            profile = self.cache_public_profile(user_id, data.public_info)
            if profile is not None and profile.is_online:
                self.current_user_id = user_id
                established = not had_current_profile
        if data.private_info is not None:
            self.private_info = data.private_info
        if data.server_info is not None:
            self.server_info = data.server_info
        return established

    def clear_current_user(self) -> None:
        """Drop the authenticated user and the slices that belong to it."""
        self.current_user_id = None
        self.private_info = None
        self.server_info = None

    def search_by_field(self, field_name: str, query: str) -> list[PublicProfile]:
        """Cached profiles whose string field contains query, case-insensitively."""
        needle = query.casefold()
        return [
            profile for profile in self.profile_cache.values()
            if isinstance(value := profile.field_value(field_name), str)
            and needle in value.casefold()
        ]
