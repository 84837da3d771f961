"""Unit tests for the :class:`User` model."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from todo_api.models.user import User


class TestUserModel:
    def test_password_is_hashed_and_verifiable(self, session):
        user = UserFactory(password="hunter22")

        assert user.password_hash
        assert user.password_hash != "hunter22"
        assert user.verify_password("hunter22")
        assert not user.verify_password("hunter23")

    def test_hash_is_salted(self, session):
        a = UserFactory()
        b = UserFactory()

        assert a.password_hash != b.password_hash
        assert a.verify_password(DEFAULT_PASSWORD)
        assert b.verify_password(DEFAULT_PASSWORD)

    def test_password_is_write_only(self):
        with pytest.raises(AttributeError):
            _ = User(username="alice").password

    @pytest.mark.parametrize("raw", ["", None])
    def test_empty_password_rejected(self, raw):
        user = User(username="alice")
        with pytest.raises(ValueError):
            user.password = raw

    @pytest.mark.parametrize("value", ["", None, "x" * 151])
    def test_username_validation(self, value):
        with pytest.raises(ValueError):
            User(username=value)

    def test_username_kept_as_given(self):
        assert User(username="  Alice ").username == "  Alice "

    def test_username_unique_constraint(self, session):
        UserFactory(username="alice")
        session.commit()

        session.add(User(username="alice", password_hash="x"))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_usernames_are_case_sensitive(self, session):
        UserFactory(username="alice")
        UserFactory(username="Alice")
        session.flush()

        assert session.query(User).filter_by(username="Alice").count() == 1

    def test_repr_has_no_secrets(self, session):
        user = UserFactory(password="hunter22")
        text = repr(user)

        assert "User" in text
        assert user.password_hash not in text
