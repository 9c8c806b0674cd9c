"""
Credential Verifier Tests
=========================
PBKDF2 hashing, legacy bcrypt verification and rehash detection.
"""

import hashlib

import bcrypt
import pytest

from storefront_guard.password import (
    PasswordHasher,
    hash_password,
    hash_password_sync,
    is_bcrypt_hash,
    needs_rehash,
    verify_password,
    verify_password_sync,
    verify_stored_password,
)


class TestPasswordHasher:
    """Tests for the PBKDF2 hasher."""

    def test_hash_shape(self):
        """Should produce a 64-byte hex hash and a 16-byte hex salt."""
        result = PasswordHasher().hash("correct horse")
        assert len(result.hash) == 128
        assert len(result.salt) == 32

    def test_matches_pbkdf2_sha512(self):
        """Hex salt string should be used as the KDF salt."""
        salt = "00112233445566778899aabbccddeeff"
        expected = hashlib.pbkdf2_hmac("sha512", b"pw", salt.encode(), 10000, dklen=64).hex()
        assert PasswordHasher().hash("pw", salt=salt).hash == expected

    def test_verify(self):
        """Should accept the right password only."""
        hasher = PasswordHasher()
        result = hasher.hash("s3cret!")
        assert hasher.verify("s3cret!", result.hash, result.salt) is True
        assert hasher.verify("s3cret", result.hash, result.salt) is False
        assert hasher.verify("s3cret!", result.hash, "deadbeef") is False

    def test_verify_empty_inputs(self):
        """Empty password, hash or salt should never verify."""
        hasher = PasswordHasher()
        result = hasher.hash("x")
        assert hasher.verify("", result.hash, result.salt) is False
        assert hasher.verify("x", "", result.salt) is False
        assert hasher.verify("x", result.hash, "") is False

    def test_unique_salts(self):
        """Same password should hash differently each time."""
        hasher = PasswordHasher()
        assert hasher.hash("same").hash != hasher.hash("same").hash

    def test_minimum_iterations(self):
        """Should refuse fewer than 10000 iterations."""
        with pytest.raises(ValueError):
            PasswordHasher(iterations=9999)
        assert PasswordHasher(iterations=20000).iterations == 20000

    def test_empty_password(self):
        """Should refuse to hash an empty password."""
        with pytest.raises(ValueError):
            PasswordHasher().hash("")

    def test_sync_helpers(self):
        """Sync helpers should round-trip."""
        result = hash_password_sync("pw123")
        assert verify_password_sync("pw123", result.hash, result.salt) is True
        assert verify_password_sync("nope", result.hash, result.salt) is False


class TestAsyncPassword:
    """Tests for executor-backed hashing."""

    @pytest.mark.asyncio
    async def test_hash_and_verify(self):
        """Should hash and verify without blocking the loop."""
        result = await hash_password("async-pw")
        assert await verify_password("async-pw", result.hash, result.salt) is True
        assert await verify_password("wrong", result.hash, result.salt) is False

    @pytest.mark.asyncio
    async def test_empty_password(self):
        """Should refuse an empty password."""
        with pytest.raises(ValueError):
            await hash_password("")


class TestLegacyHashes:
    """Tests for bcrypt detection and migration."""

    def test_bcrypt_verification(self):
        """Stored bcrypt hashes should still verify."""
        legacy = bcrypt.hashpw(b"old-password", bcrypt.gensalt(rounds=4)).decode()

        assert is_bcrypt_hash(legacy) is True
        assert verify_stored_password("old-password", legacy) is True
        assert verify_stored_password("other", legacy) is False

    def test_pbkdf2_verification(self):
        """PBKDF2 hashes need their salt."""
        result = hash_password_sync("pw")
        assert verify_stored_password("pw", result.hash, result.salt) is True
        assert verify_stored_password("pw", result.hash, None) is False

    def test_needs_rehash(self):
        """bcrypt and unsalted hashes should be upgraded; PBKDF2 should not."""
        legacy = bcrypt.hashpw(b"pw", bcrypt.gensalt(rounds=4)).decode()
        current = hash_password_sync("pw")

        assert needs_rehash(legacy) is True
        assert needs_rehash(current.hash, None) is True
        assert needs_rehash(current.hash, current.salt) is False
        assert needs_rehash(None) is True
