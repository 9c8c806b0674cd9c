"""
Password Utilities
==================
Legacy hash detection and upgrade checks.
"""

from typing import Optional

import bcrypt
import structlog

from .hasher import get_cached_hasher, MIN_ITERATIONS

logger = structlog.get_logger(__name__)

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def is_bcrypt_hash(stored_hash: Optional[str]) -> bool:
    return bool(stored_hash) and stored_hash.startswith(BCRYPT_PREFIXES)


def verify_stored_password(
    password: str,
    stored_hash: str,
    salt: Optional[str] = None,
    iterations: int = MIN_ITERATIONS,
) -> bool:
    """
    Verify a password against either a bcrypt or a PBKDF2 hash.

    Args:
        password: Plain text password
        stored_hash: Hash from the user record
        salt: PBKDF2 salt (unused for bcrypt hashes)
        iterations: PBKDF2 iteration count

    Returns:
        True if password matches
    """
    if not password or not stored_hash:
        return False

    if is_bcrypt_hash(stored_hash):
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
        except ValueError:
            logger.warning("invalid_bcrypt_hash")
            return False

    if not salt:
        return False
    return get_cached_hasher(iterations).verify(password, stored_hash, salt)


def needs_rehash(stored_hash: Optional[str], salt: Optional[str] = None) -> bool:
    """
    Check if a hash needs to be upgraded.

    Returns True if:
    - Hash is bcrypt (should migrate to PBKDF2)
    - Hash has no salt
    - Hash length does not match the current key length
    """
    if not stored_hash or is_bcrypt_hash(stored_hash):
        return True
    if not salt:
        return True
    return len(stored_hash) != get_cached_hasher().key_length * 2
