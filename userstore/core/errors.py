"""Error Hierarchy — typed, categorized exceptions for all user store failure modes.

Invariants:
    - Every error has a message (str), code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation errors never reach the backend; backend errors are forwarded verbatim
    - `message` is the caller-facing text (callbacks read `error.message`)

Design Decisions:
    - Single hierarchy with UserStoreError base: callers can catch one type
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    BACKEND = "backend"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class UserStoreError(Exception):
    """Base exception for all user store errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_dict(self) -> dict:
        """Plain error envelope, as handed to UI layers."""
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
            "operation": self.context.operation,
        }


# ─── Validation Errors (local) ──────────────────────────────────

class CredentialsMissingError(UserStoreError):
    """Email or password absent on account creation."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "You must provide an email and password",
            "CREDENTIALS_MISSING", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context,
        )


# ─── Backend Errors (forwarded to callers) ──────────────────────

class InvalidCredentialsError(UserStoreError):
    """Email/password pair did not match an account."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "The email or password is incorrect",
            "INVALID_CREDENTIALS", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context,
        )


class EmailAlreadyRegisteredError(UserStoreError):
    """An account already exists for the email."""
    def __init__(self, email: str, context: ErrorContext | None = None):
        super().__init__(
            f"An account already exists for {email}",
            "EMAIL_ALREADY_REGISTERED", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context,
        )
        self.email = email


class ResourceNotFoundError(UserStoreError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class BackendOperationError(UserStoreError):
    """Backend rejected or failed an account operation."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = operation
        super().__init__(
            f"Backend {operation} failed: {message}",
            "BACKEND_ERROR", ErrorCategory.BACKEND,
            ErrorSeverity.ERROR, ctx,
        )
        self.operation = operation


class DatabaseError(UserStoreError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context,
        )
        self.operation = operation
