"""
Password hashing for user accounts.
"""

import logging

from passlib.context import CryptContext

logger = logging.getLogger(__name__)

# pbkdf2_sha256 is pure python, so no native backend is required
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plain password against a stored hash.

    Returns False instead of raising when the stored value is not a
    recognised hash.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.warning(f"Stored password hash could not be verified: {e}")
        return False


def dummy_verify() -> None:
    """Spend the same time as a real verify when there is no stored hash."""
    pwd_context.dummy_verify()
