"""
Password Hasher
===============
PBKDF2 password hasher configuration and initialization.
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

MIN_ITERATIONS = 10000


@dataclass(frozen=True)
class PasswordHash:
    """A derived password hash and the salt it was derived with (both hex)."""
    hash: str
    salt: str


class PasswordHasher:
    """Derives and checks salted PBKDF2 password hashes."""

    def __init__(
        self,
        iterations: int = MIN_ITERATIONS,
        key_length: int = 64,
        digest: str = "sha512",
        salt_bytes: int = 16,
    ):
        if iterations < MIN_ITERATIONS:
            raise ValueError(f"PBKDF2 needs at least {MIN_ITERATIONS} iterations")
        self.iterations = iterations
        self.key_length = key_length
        self.digest = digest
        self.salt_bytes = salt_bytes

    def generate_salt(self) -> str:
        return secrets.token_hex(self.salt_bytes)

    def _derive(self, password: str, salt: str) -> str:
        # The hex salt string itself is the KDF salt, as the Node backend does
        return hashlib.pbkdf2_hmac(
            self.digest,
            password.encode("utf-8"),
            salt.encode("utf-8"),
            self.iterations,
            dklen=self.key_length,
        ).hex()

    def hash(self, password: str, salt: Optional[str] = None) -> PasswordHash:
        """
        Hash a password.

        Args:
            password: Plain text password
            salt: Existing salt to reuse (a new one is generated when omitted)

        Returns:
            PasswordHash with hex hash and salt
        """
        if not password:
            raise ValueError("Password cannot be empty")
        salt = salt or self.generate_salt()
        return PasswordHash(hash=self._derive(password, salt), salt=salt)

    def verify(self, password: str, hash: str, salt: str) -> bool:
        """
        Verify a password against a stored hash and salt.

        Uses constant-time comparison to prevent timing attacks.
        """
        if not password or not hash or not salt:
            return False
        candidate = self._derive(password, salt)
        return hmac.compare_digest(candidate.encode("ascii"), hash.encode("utf-8"))


@lru_cache(maxsize=4)
def get_cached_hasher(iterations: int = MIN_ITERATIONS) -> PasswordHasher:
    """Get a cached hasher instance for an iteration count."""
    return PasswordHasher(iterations=iterations)
