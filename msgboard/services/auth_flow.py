from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .credentials import CredentialStore
from .errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from .passwords import MIN_PASSWORD_LENGTH, burn_verify, hash_password, verify_password
from .sessions import SessionStore, SessionUser

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: SessionUser


class AuthWorkflow:
    """Registration, login, logout and bearer-token checks.

    Holds no state of its own; sessions live in the injected ``SessionStore``.
    """

    def __init__(self, credentials: CredentialStore, sessions: SessionStore):
        self.credentials = credentials
        self.sessions = sessions

    def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> int:
        username = (username or "").strip()
        email = (email or "").strip()

        if not username or not email or not password:
            raise ValidationError("Username, email and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if not EMAIL_RE.match(email):
            raise ValidationError("Invalid email format")

        if self.credentials.find_user_by_username_or_email(username, email):
            raise ConflictError("Username or email already exists")

        user = self.credentials.insert_user(
            username=username,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
        )
        logger.info("registered user id=%s username=%s", user.id, user.username)
        return user.id

    def login(self, username: str, password: str) -> LoginResult:
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required")

        user = self.credentials.find_user_by_username_or_email(username)
        if user is None:
            burn_verify(password)
            logger.info("login failed: no user matches %r", username)
            raise NotFoundError("User does not exist")

        if not verify_password(password, user.password_hash):
            logger.info("login failed: wrong password for user id=%s", user.id)
            raise InvalidCredentialsError("Incorrect password")

        snapshot = SessionUser.from_user(user)
        token = self.sessions.create(snapshot)
        logger.info("user id=%s logged in", user.id)
        return LoginResult(token=token, user=snapshot)

    def verify_token(self, token: str | None) -> SessionUser:
        user = self.sessions.resolve(token)
        if user is None:
            raise UnauthenticatedError("Token is invalid or expired")
        return user

    def logout(self, token: str | None) -> None:
        if self.sessions.resolve(token) is not None:
            self.sessions.revoke(token)
