"""
Password Hashing
================

Secure password hashing using bcrypt.

Version: 0.1.0
"""

from passlib.context import CryptContext

from shared.config import settings


_pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Bcrypt hash of the password
    """
    return _pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Malformed hashes are treated as a mismatch.
    """
    try:
        return _pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def needs_rehash(hashed_password: str) -> bool:
    """Check whether a stored hash was made with outdated bcrypt parameters."""
    return _pwd_context.needs_update(hashed_password)
