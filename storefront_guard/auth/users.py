"""
User Records
============
Credential records and the storage interface the login flow uses.
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional, Protocol

from ..password import MIN_ITERATIONS, hash_password


def normalize_username(username: str) -> str:
    return username.strip().lower()


@dataclass
class UserRecord:
    """A user's credentials and last-login bookkeeping."""
    username: str
    password_hash: str
    salt: Optional[str] = None  # None for legacy bcrypt hashes
    role: str = "user"          # "admin" or "user"
    last_login: Optional[float] = None  # Epoch seconds
    last_ip: Optional[str] = None


class UserStore(Protocol):
    """Persistence for user records."""

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    async def save(self, user: UserRecord) -> None:
        ...


class InMemoryUserStore:
    """Dict-backed user store for tests and single-process deployments."""

    def __init__(self, users: Iterable[UserRecord] = ()):
        self._users: Dict[str, UserRecord] = {}
        for user in users:
            self._put(user)

    def _put(self, user: UserRecord) -> None:
        key = normalize_username(user.username)
        self._users[key] = replace(user, username=key)

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        if not username:
            return None
        user = self._users.get(normalize_username(username))
        # Callers mutate and save; hand out copies
        return replace(user) if user is not None else None

    async def save(self, user: UserRecord) -> None:
        self._put(user)

    def __len__(self) -> int:
        return len(self._users)


async def create_user(
    store: UserStore,
    username: str,
    password: str,
    role: str = "user",
    iterations: int = MIN_ITERATIONS,
) -> UserRecord:
    """
    Hash a password and save a new user.

    Raises:
        ValueError: Username or password is empty
    """
    if not username or not username.strip():
        raise ValueError("Username cannot be empty")
    hashed = await hash_password(password, iterations)
    user = UserRecord(
        username=normalize_username(username),
        password_hash=hashed.hash,
        salt=hashed.salt,
        role=role,
    )
    await store.save(user)
    return user
