"""
Tests for the merchant session.

These tests verify the mocked sign-in methods, persistence to the
session file and the open/close lifecycle.
"""

import json
from pathlib import Path

import pytest

from shop.session import NotAuthenticatedError, Session


class TestSignIn:
    """Tests for the mocked sign-in methods."""

    def test_starts_signed_out(self, session: Session):
        assert session.is_authenticated is False
        assert session.is_loading is False
        assert session.is_open is True

    def test_login(self, session: Session):
        user = session.login("awa@example.com", "secret")

        assert user.id == "123"
        assert user.name == "Demo User"
        assert user.email == "awa@example.com"
        assert user.avatar.endswith("u=123")
        assert session.is_authenticated is True

    def test_register_keeps_name(self, session: Session):
        user = session.register("Awa Koné", "awa@example.com", "secret")

        assert user.id == "123"
        assert user.name == "Awa Koné"

    def test_google(self, session: Session):
        user = session.login_with_google()

        assert user.id == "456"
        assert user.email == "google@example.com"

    def test_otp(self, session: Session):
        user = session.login_with_otp("0700000000")

        assert user.id == "789"
        assert user.name == "OTP User"
        assert user.email == "0700000000@user.com"

    def test_require_user(self, session: Session):
        with pytest.raises(NotAuthenticatedError):
            session.require_user()

        session.login_with_google()
        assert session.require_user().id == "456"


class TestPersistence:
    """Tests for the session file."""

    def test_sign_in_writes_file(self, session: Session, tmp_path: Path):
        session.login("awa@example.com", "secret")

        with open(tmp_path / "session.json", encoding="utf-8") as f:
            stored = json.load(f)
        assert stored["email"] == "awa@example.com"

    def test_open_restores_user(self, tmp_path: Path):
        Session(tmp_path / "session.json").open().login_with_otp("0102030405")

        restored = Session(tmp_path / "session.json").open()

        assert restored.is_authenticated is True
        assert restored.user.id == "789"

    def test_logout_removes_file(self, session: Session, tmp_path: Path):
        session.login("awa@example.com", "secret")

        session.logout()

        assert session.is_authenticated is False
        assert not (tmp_path / "session.json").exists()
        assert Session(tmp_path / "session.json").open().is_authenticated is False

    def test_logout_when_signed_out(self, session: Session):
        session.logout()
        assert session.user is None

    def test_in_memory_session(self):
        session = Session().open()

        session.login("awa@example.com", "secret")
        assert session.is_authenticated is True

        session.logout()
        assert session.is_authenticated is False


class TestLifecycle:
    """Tests for open/close."""

    def test_loading_until_opened(self, tmp_path: Path):
        session = Session(tmp_path / "session.json")
        assert session.is_loading is True

        session.open()
        assert session.is_loading is False

    def test_context_manager(self, tmp_path: Path):
        with Session(tmp_path / "session.json") as session:
            session.login_with_google()
            assert session.is_open is True

        assert session.is_open is False
        assert session.user is None
        # The stored user survives close
        assert (tmp_path / "session.json").exists()
