"""
Merchant session.

Holds the signed-in user. Authentication is mocked: every sign-in method
succeeds and yields a fixed demo identity. The user is kept in a JSON
session file when one is configured, so a restart restores the session.

Lifecycle:
    session = Session(session_file)
    session.open()      # restores a stored user, if any
    ...
    session.close()

``Session`` is also a context manager. The API creates one in its
lifespan and hands it to routes through dependency injection.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from shop.models import User

logger = logging.getLogger("session")

AVATAR_URL = "https://i.pravatar.cc/150?u={user_id}"


class NotAuthenticatedError(Exception):
    """Raised when an operation needs a signed-in user."""


class Session:
    """Explicit replacement for a browser-storage auth context."""

    def __init__(self, storage_path: Optional[Path] = None):
        self.storage_path = Path(storage_path) if storage_path else None
        self.user: Optional[User] = None
        self.is_loading = True
        self.is_open = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self) -> "Session":
        """Restore a stored user, if any, and mark the session ready."""
        if self.storage_path is not None and self.storage_path.exists():
            with open(self.storage_path, "r", encoding="utf-8") as f:
                self.user = User(**json.load(f))
            logger.info(f"Restored session for {self.user.email}")
        self.is_loading = False
        self.is_open = True
        return self

    def close(self) -> None:
        """End the session lifecycle. The stored user is kept for next time."""
        self.is_open = False
        self.user = None
        self.is_loading = True

    def __enter__(self) -> "Session":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def require_user(self) -> User:
        if self.user is None:
            raise NotAuthenticatedError("Sign in required")
        return self.user

    def _sign_in(self, user: User) -> User:
        self.is_loading = True
        self.user = user
        if self.storage_path is not None:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.storage_path, "w", encoding="utf-8") as f:
                json.dump(user.model_dump(), f)
        self.is_loading = False
        logger.info(f"Signed in {user.email} (user {user.id})")
        return user

    # =========================================================================
    # Sign-in methods (mocked)
    # =========================================================================

    def login(self, email: str, password: str) -> User:
        return self._sign_in(User(
            id="123",
            name="Demo User",
            email=email,
            avatar=AVATAR_URL.format(user_id="123"),
        ))

    def register(self, name: str, email: str, password: str) -> User:
        return self._sign_in(User(
            id="123",
            name=name,
            email=email,
            avatar=AVATAR_URL.format(user_id="123"),
        ))

    def login_with_google(self) -> User:
        return self._sign_in(User(
            id="456",
            name="Google User",
            email="google@example.com",
            avatar=AVATAR_URL.format(user_id="456"),
        ))

    def login_with_otp(self, phone: str) -> User:
        return self._sign_in(User(
            id="789",
            name="OTP User",
            email=f"{phone}@user.com",
            avatar=AVATAR_URL.format(user_id="789"),
        ))

    def logout(self) -> None:
        """Forget the user and remove the stored session."""
        if self.user is not None:
            logger.info(f"Signed out {self.user.email}")
        self.user = None
        if self.storage_path is not None and self.storage_path.exists():
            self.storage_path.unlink()
