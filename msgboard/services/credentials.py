"""Row-level access to users and password-reset codes.

Each write commits on its own; a failed statement is rolled back and
reported as ``DependencyError``.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from msgboard.models.password_reset import PasswordReset
from msgboard.models.user import User

from .errors import ConflictError, DependencyError

logger = logging.getLogger(__name__)


@contextmanager
def _guard(db: Session, op: str):
    try:
        yield
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("database error during %s: %s", op, e)
        raise DependencyError(f"Database unavailable during {op}") from e


class CredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def find_user_by_username_or_email(self, username: str, email: str | None = None) -> User | None:
        email = username if email is None else email
        with _guard(self.db, "user lookup"):
            q = (
                select(User)
                .where(or_(User.username == username, User.email == email))
                .order_by(User.id)
                .limit(1)
            )
            return self.db.execute(q).scalars().first()

    def find_user_by_email(self, email: str) -> User | None:
        with _guard(self.db, "user lookup"):
            return self.db.execute(select(User).where(User.email == email)).scalars().first()

    def insert_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
        )
        try:
            with _guard(self.db, "user insert"):
                self.db.add(user)
                self.db.commit()
                self.db.refresh(user)
        except IntegrityError as e:
            raise ConflictError("Username or email already exists") from e
        return user

    def update_password_hash(self, email: str, password_hash: str) -> int:
        with _guard(self.db, "password update"):
            res = self.db.execute(
                update(User).where(User.email == email).values(password_hash=password_hash)
            )
            self.db.commit()
            return res.rowcount

    def count_users(self) -> int:
        with _guard(self.db, "user count"):
            return self.db.execute(select(func.count(User.id))).scalar_one()


class ResetCodeStore:
    def __init__(self, db: Session):
        self.db = db

    def delete_codes_for_email(self, email: str) -> int:
        with _guard(self.db, "reset code cleanup"):
            res = self.db.execute(delete(PasswordReset).where(PasswordReset.email == email))
            self.db.commit()
            return res.rowcount

    def insert_code(self, email: str, code: str, expires_at: datetime) -> PasswordReset:
        row = PasswordReset(email=email, verification_code=code, expires_at=expires_at, used=False)
        with _guard(self.db, "reset code insert"):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        return row

    def find_active_code(self, email: str, code: str, now: datetime) -> PasswordReset | None:
        with _guard(self.db, "reset code lookup"):
            q = select(PasswordReset).where(
                PasswordReset.email == email,
                PasswordReset.verification_code == code,
                PasswordReset.expires_at > now,
                PasswordReset.used.is_(False),
            )
            return self.db.execute(q).scalars().first()

    def find_any_unused_code(self, email: str, code: str) -> PasswordReset | None:
        with _guard(self.db, "reset code lookup"):
            q = select(PasswordReset).where(
                PasswordReset.email == email,
                PasswordReset.verification_code == code,
                PasswordReset.used.is_(False),
            )
            return self.db.execute(q).scalars().first()

    def mark_code_used(self, code_id: int) -> int:
        # conditional on used=False so only one caller can consume a code
        with _guard(self.db, "reset code update"):
            res = self.db.execute(
                update(PasswordReset)
                .where(PasswordReset.id == code_id, PasswordReset.used.is_(False))
                .values(used=True)
            )
            self.db.commit()
            return res.rowcount
