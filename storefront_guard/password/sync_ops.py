"""
Sync Password Operations
========================
Synchronous password operations for non-async contexts.
"""

from .hasher import PasswordHash, get_cached_hasher, MIN_ITERATIONS


def hash_password_sync(password: str, iterations: int = MIN_ITERATIONS) -> PasswordHash:
    """Synchronous version of hash_password (use async version when possible)."""
    return get_cached_hasher(iterations).hash(password)


def verify_password_sync(password: str, hash: str, salt: str, iterations: int = MIN_ITERATIONS) -> bool:
    """Synchronous version of verify_password (use async version when possible)."""
    return get_cached_hasher(iterations).verify(password, hash, salt)
