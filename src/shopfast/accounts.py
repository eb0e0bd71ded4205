"""In-memory account store for shopfast."""

from collections.abc import Iterable

import structlog

from .models import User

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 4


class AccountStore:
    """Manages user accounts, indexed by ID and by email."""

    def __init__(self, users: Iterable[User] = ()):
        self._users: dict[str, User] = {}
        self._by_email: dict[str, str] = {}
        self._next_id = 1
        for user in users:
            self._insert(user)

    def _insert(self, user: User) -> None:
        self._users[user.id] = user
        self._by_email[user.email] = user.id
        if user.id.isdigit():
            self._next_id = max(self._next_id, int(user.id) + 1)

    def get_by_id(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def get_by_email(self, email: str) -> User | None:
        user_id = self._by_email.get(email)
        return self._users.get(user_id) if user_id is not None else None

    def list(self, name: str | None = None, age: int | None = None) -> list[User]:
        """List users, optionally filtered by name substring and exact age."""
        users = list(self._users.values())
        if name:
            needle = name.lower()
            users = [u for u in users if needle in u.name.lower()]
        if age is not None:
            users = [u for u in users if u.age == age]
        return users

    def create(self, name: str, email: str, age: int) -> User:
        """
        Create a user with the next sequential ID.

        Email uniqueness is the caller's responsibility.
        """
        user = User(id=str(self._next_id), name=name, email=email, age=age)
        self._insert(user)
        logger.info("user_created", user_id=user.id)
        return user

    def update(self, user_id: str, name: str, age: int) -> User | None:
        user = self._users.get(user_id)
        if user is None:
            return None
        user.name = name
        user.age = age
        return user

    def delete(self, user_id: str) -> bool:
        user = self._users.pop(user_id, None)
        if user is None:
            return False
        if self._by_email.get(user.email) == user_id:
            del self._by_email[user.email]
        logger.info("user_deleted", user_id=user_id)
        return True

    def authenticate(self, email: str, password: str) -> User | None:
        """
        Placeholder credential check.

        Succeeds when the email contains "@", the password has at least four
        characters and an account with that email exists. This is demo logic,
        not real credential verification: no password is stored or compared.

        Returns:
            The stored User with `is_authenticated` set, or None.
        """
        if "@" in email and len(password) >= MIN_PASSWORD_LENGTH:
            user = self.get_by_email(email)
            if user is not None:
                user.is_authenticated = True
                return user
        logger.info("authentication_failed", email=email)
        return None

    def logout(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        if user is not None:
            user.is_authenticated = False
        return user
