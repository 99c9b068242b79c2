"""Passwords — bcrypt hashes and reset tokens."""

import hashlib
import secrets

import bcrypt

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash password using bcrypt with `rounds` as the work factor."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def check_password(password: str, stored_hash: str) -> bool:
    """True if `password` matches the bcrypt `stored_hash`. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(_password_bytes(password), stored_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Stored form of a reset token (hex SHA-256)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
