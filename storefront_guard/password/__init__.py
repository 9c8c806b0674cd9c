"""
Credential Verifier
===================
Salted PBKDF2 password hashing with constant-time verification.

- PBKDF2-HMAC-SHA512, 64-byte derived key, 16-byte random salt
- Iteration count is configurable (never below 10000)
- Async-safe: hashing runs in the default thread pool executor

Migration from bcrypt:
- The storefront's user model historically stored bcrypt hashes
- On login, detect the algorithm from the hash prefix
- If bcrypt verified, rehash with PBKDF2 (transparent upgrade)
"""

# Re-export all public APIs
from .hasher import PasswordHasher, PasswordHash, get_cached_hasher, MIN_ITERATIONS
from .async_ops import hash_password, verify_password
from .sync_ops import hash_password_sync, verify_password_sync
from .utils import is_bcrypt_hash, needs_rehash, verify_stored_password

__all__ = [
    # Hasher
    "PasswordHasher",
    "PasswordHash",
    "get_cached_hasher",
    "MIN_ITERATIONS",
    # Async Operations
    "hash_password",
    "verify_password",
    # Sync Operations
    "hash_password_sync",
    "verify_password_sync",
    # Utils
    "is_bcrypt_hash",
    "needs_rehash",
    "verify_stored_password",
]
