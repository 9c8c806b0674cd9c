"""
Async Password Hashing
======================
Async-safe password hashing and verification.
"""

import asyncio

from .hasher import PasswordHash, get_cached_hasher, MIN_ITERATIONS


async def hash_password(password: str, iterations: int = MIN_ITERATIONS) -> PasswordHash:
    """
    Hash a password with PBKDF2.

    Args:
        password: Plain text password to hash
        iterations: PBKDF2 iteration count

    Returns:
        PasswordHash holding the hex hash and salt
    """
    if not password:
        raise ValueError("Password cannot be empty")

    hasher = get_cached_hasher(iterations)
    loop = asyncio.get_running_loop()

    # Run in executor to avoid blocking the event loop
    return await loop.run_in_executor(None, hasher.hash, password)


async def verify_password(password: str, hash: str, salt: str, iterations: int = MIN_ITERATIONS) -> bool:
    """
    Verify a password against a PBKDF2 hash and salt.

    Returns:
        True if password matches, False otherwise
    """
    if not password or not hash or not salt:
        return False

    hasher = get_cached_hasher(iterations)
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, hasher.verify, password, hash, salt)
