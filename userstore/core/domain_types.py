"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId wraps the backend's document key (str), never a bare str in domain logic
    - Session phases and privacy tiers encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)


# ─── Enums ───────────────────────────────────────────────────────

class SessionPhase(str, Enum):
    """Authentication state of the local session."""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class PrivacyTier(str, Enum):
    """Who may read (and write) a slice of a user document."""
    PUBLIC = "public_info"      # every user reads, owner writes
    PRIVATE = "private_info"    # owner reads and writes
    SERVER = "server_info"      # owner reads, backend writes


class FeedEvent(str, Enum):
    """Kinds of notification delivered on the current-user feed."""
    ERROR = "error"
    ABSENT = "absent"
    DATA = "data"
