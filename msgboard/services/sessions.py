from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from .tokens import new_token

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class SessionUser:
    """Public fields of a user, frozen at login time."""

    id: int
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None

    @classmethod
    def from_user(cls, user) -> "SessionUser":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
        )

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
        }


class SessionStore:
    """Thread-safe in-memory map of bearer token -> SessionUser.

    Args:
        ttl_seconds: idle lifetime of a session. ``0``/``None`` disables expiry;
            otherwise each successful ``resolve`` pushes the deadline forward.
        clock: monotonic time source, replaceable in tests.
    """

    def __init__(self, ttl_seconds: int | None = None, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds or None
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[SessionUser, float | None]] = {}

    def _deadline(self) -> float | None:
        return self._clock() + self._ttl if self._ttl else None

    def create(self, user) -> str:
        snapshot = user if isinstance(user, SessionUser) else SessionUser.from_user(user)
        with self._lock:
            token = new_token()
            while token in self._entries:
                token = new_token()
            self._entries[token] = (snapshot, self._deadline())
        return token

    def resolve(self, token: str | None) -> SessionUser | None:
        if not token:
            return None
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return None
            snapshot, deadline = entry
            if deadline is not None and deadline <= self._clock():
                del self._entries[token]
                return None
            if deadline is not None:
                self._entries[token] = (snapshot, self._deadline())
            return snapshot

    def revoke(self, token: str | None) -> None:
        if not token:
            return
        with self._lock:
            self._entries.pop(token, None)

    def revoke_user(self, user_id: int) -> int:
        with self._lock:
            doomed = [t for t, (u, _) in self._entries.items() if u.id == user_id]
            for t in doomed:
                del self._entries[t]
        return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ResetTokenRegistry:
    """Single-use reset tokens bound to the email that verified a code."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens: dict[str, str] = {}

    def issue(self, email: str) -> str:
        token = new_token()
        with self._lock:
            self._tokens[token] = email
        return token

    def consume(self, token: str, email: str) -> bool:
        with self._lock:
            if self._tokens.get(token) != email:
                return False
            del self._tokens[token]
            return True


def bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None
