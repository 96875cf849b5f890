"""Unit tests for auth/store.py -- the in-memory credential store.

Covers:
- register() assigns ids, hashes the password, rejects missing fields
- duplicate email -> DuplicateEmailError regardless of the other fields
- email matching is exact and case-sensitive
- authenticate() accepts the registered password and rejects password + "x"
- unknown email and wrong password raise the same error
- concurrent registrations of one email admit exactly one
"""

from __future__ import annotations

import threading

import pytest

from auth.models import Role
from auth.store import UserStore
from core.errors import DuplicateEmailError, InvalidCredentialsError, MissingFieldError


@pytest.fixture
def store() -> UserStore:
    return UserStore()


class TestRegister:
    def test_register_returns_stored_user(self, store: UserStore) -> None:
        user = store.register("A", "a@x.com", "pw1", "user")
        assert user.id == 1
        assert user.email == "a@x.com"
        assert user.role == "user"
        assert user.hashed_password != "pw1"
        assert store.get_by_id(1) == user

    def test_ids_are_sequential(self, store: UserStore) -> None:
        first = store.register("A", "a@x.com", "pw1", "user")
        second = store.register("B", "b@x.com", "pw2", "admin")
        assert (first.id, second.id) == (1, 2)

    def test_role_enum_accepted(self, store: UserStore) -> None:
        assert store.register("A", "a@x.com", "pw1", Role.admin).role == "admin"

    @pytest.mark.parametrize(
        "name,email,password,role,missing",
        [
            (None, "a@x.com", "pw1", "user", ["name"]),
            ("A", "", "pw1", "user", ["email"]),
            ("A", "a@x.com", None, "user", ["password"]),
            ("A", "a@x.com", "pw1", "", ["role"]),
            (None, None, None, None, ["name", "email", "password", "role"]),
        ],
    )
    def test_missing_fields(self, store: UserStore, name, email, password, role, missing) -> None:
        with pytest.raises(MissingFieldError) as exc_info:
            store.register(name, email, password, role)
        assert exc_info.value.fields == missing
        assert store.count() == 0

    def test_duplicate_email_regardless_of_other_fields(self, store: UserStore) -> None:
        store.register("A", "a@x.com", "pw1", "user")
        with pytest.raises(DuplicateEmailError):
            store.register("Someone Else", "a@x.com", "different", "admin")
        assert store.count() == 1

    def test_email_match_is_case_sensitive(self, store: UserStore) -> None:
        store.register("A", "a@x.com", "pw1", "user")
        other = store.register("A", "A@x.com", "pw1", "user")
        assert other.id == 2

    def test_concurrent_duplicate_registration(self, store: UserStore) -> None:
        """Many threads racing on one email: exactly one wins, the rest see DuplicateEmailError."""
        results: list[str] = []
        results_lock = threading.Lock()

        def attempt(i: int) -> None:
            try:
                store.register(f"N{i}", "race@x.com", "pw", "user")
                outcome = "ok"
            except DuplicateEmailError:
                outcome = "dup"
            with results_lock:
                results.append(outcome)

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == 1
        assert results.count("dup") == 7
        assert store.count() == 1

    def test_seed_skips_existing(self, store: UserStore) -> None:
        accounts = [("Admin User", "admin@example.com", "admin123", "admin")]
        store.seed(accounts)
        store.seed(accounts)
        assert store.count() == 1


class TestAuthenticate:
    def test_valid_credentials(self, store: UserStore) -> None:
        registered = store.register("A", "a@x.com", "pw1", "user")
        assert store.authenticate("a@x.com", "pw1") == registered

    def test_password_plus_suffix_fails(self, store: UserStore) -> None:
        store.register("A", "a@x.com", "pw1", "user")
        with pytest.raises(InvalidCredentialsError):
            store.authenticate("a@x.com", "pw1x")

    def test_unknown_email_and_wrong_password_look_identical(self, store: UserStore) -> None:
        store.register("A", "a@x.com", "pw1", "user")
        with pytest.raises(InvalidCredentialsError) as unknown:
            store.authenticate("nobody@x.com", "pw1")
        with pytest.raises(InvalidCredentialsError) as wrong:
            store.authenticate("a@x.com", "nope")
        assert unknown.value.message == wrong.value.message
        assert unknown.value.status_code == wrong.value.status_code == 401

    @pytest.mark.parametrize("email,password", [(None, "pw1"), ("a@x.com", None), ("", "")])
    def test_missing_inputs_are_invalid_credentials(self, store: UserStore, email, password) -> None:
        store.register("A", "a@x.com", "pw1", "user")
        with pytest.raises(InvalidCredentialsError):
            store.authenticate(email, password)
