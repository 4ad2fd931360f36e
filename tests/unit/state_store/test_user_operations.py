"""Unit tests for StateStore user operations."""

import threading

import pytest

from remindly.exceptions import ConflictError, EmailAlreadyRegisteredError, UserNotFoundError
from remindly.state_store import Role, StateStore


@pytest.mark.unit
class TestCreateUser:
    """Tests for create_user and the first-user bootstrap."""

    def test_first_user_is_admin(self, store: StateStore) -> None:
        first = store.create_user(name="First", email="first@school.test", password_hash="h")
        second = store.create_user(name="Second", email="second@school.test", password_hash="h")

        assert first.role == "admin"
        assert second.role == "student"
        assert first.is_active is True

    def test_first_federated_user_is_admin(self, store: StateStore) -> None:
        """The bootstrap rule does not depend on how the account was created."""
        first = store.create_user(name="Fed", email="fed@school.test", google_id="g-1")

        assert first.role == "admin"
        assert first.password_hash is None

    def test_concurrent_first_signups_elect_one_admin(self, tmp_path) -> None:
        store = StateStore(str(tmp_path / "bootstrap.db"))
        barrier = threading.Barrier(4)

        def signup(n: int) -> None:
            barrier.wait()
            store.create_user(name=f"U{n}", email=f"u{n}@school.test", password_hash="h")

        threads = [threading.Thread(target=signup, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        roles = [u.role for u in store.list_users()]
        store.close()
        assert roles.count("admin") == 1
        assert roles.count("student") == 3

    def test_email_normalized(self, store: StateStore) -> None:
        user = store.create_user(name="Mixed", email="  Mixed.Case@School.TEST ")

        assert user.email == "mixed.case@school.test"
        assert store.find_user_by_email("MIXED.case@school.test").id == user.id

    def test_duplicate_email(self, store: StateStore) -> None:
        store.create_user(name="A", email="a@school.test")

        with pytest.raises(EmailAlreadyRegisteredError):
            store.create_user(name="A again", email="A@school.test")

    def test_duplicate_google_id(self, store: StateStore) -> None:
        store.create_user(name="A", email="a@school.test", google_id="g-1")

        with pytest.raises(ConflictError):
            store.create_user(name="B", email="b@school.test", google_id="g-1")


@pytest.mark.unit
class TestUserLookups:
    def test_get_user_missing(self, store: StateStore) -> None:
        with pytest.raises(UserNotFoundError):
            store.get_user("nope")

    def test_find_returns_none_when_missing(self, store: StateStore) -> None:
        assert store.find_user_by_email("nobody@school.test") is None
        assert store.find_user_by_google_id("g-404") is None

    def test_count_and_list_by_role(self, store: StateStore, admin, student, other_student) -> None:
        assert store.count_users() == 3
        assert [u.id for u in store.list_users(role=Role.ADMIN)] == [admin.id]
        assert {u.id for u in store.list_users(role=Role.STUDENT)} == {
            student.id,
            other_student.id,
        }


@pytest.mark.unit
class TestUpdateUser:
    def test_update_role(self, store: StateStore, admin, student) -> None:
        promoted = store.update_user_role(student.id, Role.ADMIN)

        assert promoted.role == "admin"
        assert store.get_user(student.id).is_admin

    def test_set_active(self, store: StateStore, admin, student) -> None:
        assert store.set_user_active(student.id, False).is_active is False
        assert store.set_user_active(student.id, True).is_active is True

    def test_link_google_account(self, store: StateStore, admin) -> None:
        linked = store.link_google_account(admin.id, "g-7", "https://img.test/a.png")

        assert linked.google_id == "g-7"
        assert store.find_user_by_google_id("g-7").id == admin.id

    def test_update_missing_user(self, store: StateStore) -> None:
        with pytest.raises(UserNotFoundError):
            store.update_user_role("nope", Role.ADMIN)
