"""Profile Records — typed user documents split by privacy tier.

Invariants:
    - Every cached PublicProfile has `id` equal to its cache key
    - `display_name` defaults to `email` when the backend omits it, and a defaulted
      name follows later email changes
    - Backend-defined extra fields survive validation and round-trip unchanged
    - public_fields() never contains `id` or the derived `display_name`

Design Decisions:
    - Pydantic models with extra="allow": the backend owns the schema, the client only
      relies on a handful of fields
    - camelCase aliases (displayName, isOnline): the stored document uses them
    - FullUser / EstablishedUser are frozen dataclasses: read-only views, not documents
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from userstore.core.domain_types import UserId


class PublicProfile(BaseModel):
    """User attributes visible to all other users."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    email: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")
    is_online: bool = Field(default=False, alias="isOnline")

    # Value display_name was defaulted to, if it was
    _derived_display_name: str | None = PrivateAttr(default=None)

    @property
    def display_name_is_derived(self) -> bool:
        return (
            self._derived_display_name is not None
            and self.display_name == self._derived_display_name
        )

    def field_value(self, name: str) -> Any:
        """Read a field by attribute name, backend alias, or extra key."""
        fields = type(self).model_fields
        if name in fields:
            return getattr(self, name)
        for attr, info in fields.items():
            if info.alias == name:
                return getattr(self, attr)
        return (self.model_extra or {}).get(name)

    def public_fields(self) -> dict[str, Any]:
        """Document body sent to the backend on save (aliases, no derived fields)."""
        exclude = {"id"}
        if self.display_name is None or self.display_name_is_derived:
            exclude.add("display_name")
        return self.model_dump(by_alias=True, exclude=exclude)


class PrivateProfile(BaseModel):
    """Attributes visible only to the profile's owner."""

    model_config = ConfigDict(extra="allow")


class ServerProfile(BaseModel):
    """Attributes set only by the backend, read-only to the client."""

    model_config = ConfigDict(extra="allow")


class UserDataByPrivacy(BaseModel):
    """One user's document split by tier, as delivered on the current-user feed."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    public_info: PublicProfile | None = Field(default=None, alias="publicInfo")
    private_info: PrivateProfile | None = Field(default=None, alias="privateInfo")
    server_info: ServerProfile | None = Field(default=None, alias="serverInfo")

    @property
    def user_id(self) -> UserId | None:
        """Top-level id, falling back to the id inside the public document."""
        if self.id:
            return UserId(self.id)
        if self.public_info is not None and self.public_info.id:
            return UserId(self.public_info.id)
        return None


class Credentials(BaseModel):
    """Email/password pair. Presence is checked by the store, not here."""

    email: str | None = None
    password: str | None = Field(default=None, repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.email) and bool(self.password)


class PasswordResetResult(BaseModel):
    """Outcome of a password reset request."""

    email: str
    sent: bool
    expires_at: datetime | None = None


@dataclass(frozen=True)
class FullUser:
    """Current user's data by privacy tier."""
    id: UserId | None
    public: PublicProfile | None
    private: PrivateProfile | None
    server: ServerProfile | None


@dataclass(frozen=True)
class EstablishedUser:
    """Argument handed to on_login hooks."""
    id: UserId
    public_info: PublicProfile


def normalize_public_profile(
    user_id: UserId, data: PublicProfile | Mapping[str, Any],
) -> PublicProfile:
    """Return a copy of `data` keyed to `user_id` with display_name defaulted."""
    profile = (
        data if isinstance(data, PublicProfile)
        else PublicProfile.model_validate(dict(data))
    )
    if profile.display_name is not None and not profile.display_name_is_derived:
        return profile.model_copy(update={"id": user_id})
    normalized = profile.model_copy(update={"id": user_id, "display_name": profile.email})
    normalized._derived_display_name = profile.email
    return normalized


def coerce_credentials(credentials: Credentials | Mapping[str, Any] | None) -> Credentials:
    """Accept a Credentials model, a plain mapping, or nothing."""
    if credentials is None:
        return Credentials()
    if isinstance(credentials, Credentials):
        return credentials
    return Credentials.model_validate(dict(credentials))
