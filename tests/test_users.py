"""
User Store Tests
================
User records, the in-memory store and bearer-token parsing.
"""

import pytest

from storefront_guard.auth import InMemoryUserStore, UserRecord, create_user, extract_bearer_token
from storefront_guard.errors import AuthenticationRequired
from storefront_guard.password import verify_stored_password


class TestInMemoryUserStore:
    """Tests for the dict-backed store."""

    @pytest.mark.asyncio
    async def test_usernames_normalized(self):
        """Lookups should ignore case and surrounding whitespace."""
        store = InMemoryUserStore([UserRecord(username=" Alice ", password_hash="h", salt="s")])

        user = await store.find_by_username("ALICE")

        assert user.username == "alice"
        assert await store.find_by_username("") is None
        assert await store.find_by_username("bob") is None

    @pytest.mark.asyncio
    async def test_save_persists_changes(self):
        """Changes only land once saved."""
        store = InMemoryUserStore([UserRecord(username="alice", password_hash="h", salt="s")])

        user = await store.find_by_username("alice")
        user.last_ip = "1.2.3.4"
        assert (await store.find_by_username("alice")).last_ip is None

        await store.save(user)
        assert (await store.find_by_username("alice")).last_ip == "1.2.3.4"

    @pytest.mark.asyncio
    async def test_create_user(self):
        """create_user should hash the password and save the record."""
        store = InMemoryUserStore()

        user = await create_user(store, "Dave", "p4ssword", role="admin")

        assert len(store) == 1
        assert user.username == "dave"
        assert user.role == "admin"
        assert verify_stored_password("p4ssword", user.password_hash, user.salt) is True

    @pytest.mark.asyncio
    async def test_create_user_requires_username(self):
        """Blank usernames should be refused."""
        with pytest.raises(ValueError):
            await create_user(InMemoryUserStore(), "   ", "pw")


class TestBearerToken:
    """Tests for Authorization header parsing."""

    def test_extracts_token(self):
        """Should accept any casing of the scheme."""
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"
        assert extract_bearer_token("bearer  xyz ") == "xyz"

    @pytest.mark.parametrize("header", ["", "Bearer", "Bearer   ", "Basic dXNlcjpwdw==", "abc"])
    def test_rejects_missing(self, header):
        """Anything but a bearer token should require authentication."""
        with pytest.raises(AuthenticationRequired):
            extract_bearer_token(header)
