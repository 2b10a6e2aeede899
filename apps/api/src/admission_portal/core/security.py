"""
Security Utilities

Password hashing and session token helpers.

- Passwords are hashed with bcrypt via passlib.
- Session tokens are random URL-safe strings; only their SHA-256 hash is
  ever stored, so a leaked session store does not expose usable tokens.
"""

import hashlib
import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_TOKEN_BYTES = 32

# bcrypt only considers the first 72 bytes of input
_BCRYPT_MAX_BYTES = 72


def _pre_hash_password(password: str) -> str:
    """Collapse passwords longer than bcrypt's limit into a SHA-256 hex digest."""
    if len(password.encode("utf-8")) <= _BCRYPT_MAX_BYTES:
        return password
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def hash_password(password: str) -> str:
    return pwd_context.hash(_pre_hash_password(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(_pre_hash_password(plain_password), hashed_password)


def generate_session_token() -> str:
    """Generate a cryptographically secure session token (43 characters)."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """
    Hash a token for storage using SHA-256.

    Args:
        token: The plain text token

    Returns:
        Hex-encoded SHA-256 hash of the token
    """
    return hashlib.sha256(token.encode()).hexdigest()
