"""
auth/store.py -- In-memory credential store.

Pattern: Repository. UserStore owns every User record; route code never
touches the backing dict. Records are created on registration and are never
mutated or deleted.

Concurrency:
  FastAPI runs sync handlers in a worker thread pool, so registration can race.
  One lock guards the email index and the id counter. bcrypt hashing is slow
  on purpose and runs OUTSIDE the lock; the duplicate-email check therefore
  runs twice -- once up front to fail fast, once under the lock right before
  the insert.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from auth.models import Role, User
from auth.tokens import burn_password_check, hash_password, verify_password
from core.errors import DuplicateEmailError, InvalidCredentialsError, MissingFieldError

logger = logging.getLogger("catalogapi.auth.store")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        user = store.register("Ada", "ada@example.com", "pw", "user")
        same = store.authenticate("ada@example.com", "pw")
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_email: dict[str, User] = {}
        self._by_id: dict[int, User] = {}
        self._next_id = 1

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def register(self, name: str | None, email: str | None, raw_password: str | None, role: str | None) -> User:
        """Create a user and return the stored record.

        Raises MissingFieldError if any of the four inputs is None or empty,
        DuplicateEmailError if the email is already registered (exact match).
        """
        if isinstance(role, Role):
            role = role.value
        supplied = {"name": name, "email": email, "password": raw_password, "role": role}
        missing = [field for field, value in supplied.items() if not value]
        if missing:
            raise MissingFieldError(missing)

        if self.get_by_email(email) is not None:
            raise DuplicateEmailError(email)

        hashed = hash_password(raw_password)

        with self._lock:
            if email in self._by_email:
                raise DuplicateEmailError(email)
            user = User(
                id=self._next_id,
                name=name,
                email=email,
                hashed_password=hashed,
                role=role,
                created_at=_now_iso(),
            )
            self._next_id += 1
            self._by_email[email] = user
            self._by_id[user.id] = user

        logger.info("Registered user id=%d role=%s", user.id, user.role)
        return user

    def seed(self, accounts: list[tuple[str, str, str, str]]) -> None:
        """Register (name, email, password, role) tuples, skipping emails already present."""
        for name, email, password, role in accounts:
            if self.get_by_email(email) is None:
                self.register(name, email, password, role)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def authenticate(self, email: str | None, raw_password: str | None) -> User:
        """Return the user whose email and password match.

        Raises InvalidCredentialsError for an unknown email and for a wrong
        password alike. bcrypt runs in both cases so the two failures take the
        same time.
        """
        password = raw_password or ""
        user = self.get_by_email(email) if email else None
        if user is None:
            burn_password_check(password)
            raise InvalidCredentialsError()
        if not password or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError()
        return user

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self._lock:
            return self._by_email.get(email)

    def get_by_id(self, user_id: int) -> User | None:
        with self._lock:
            return self._by_id.get(user_id)

    def has_users(self) -> bool:
        return self.count() > 0

    def count(self) -> int:
        with self._lock:
            return len(self._by_id)
