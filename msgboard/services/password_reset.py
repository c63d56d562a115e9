from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from .credentials import CredentialStore, ResetCodeStore
from .errors import (
    DependencyError,
    ExpiredError,
    InvalidCodeError,
    MismatchError,
    NotFoundError,
    ValidationError,
    WeaknessError,
)
from .mailer import DeliveryResult
from .passwords import hash_password, password_weakness
from .sessions import ResetTokenRegistry, SessionStore
from .tokens import expires_in_seconds, new_reset_code, new_token, utcnow

logger = logging.getLogger(__name__)

DEFAULT_CODE_TTL_SECONDS = 60


class Notifier(Protocol):
    def send_verification_code(self, email: str, code: str) -> DeliveryResult: ...


@dataclass(frozen=True)
class CodeIssued:
    email: str
    code: str
    expires_at: datetime
    delivery_error: DependencyError | None = None

    @property
    def delivered(self) -> bool:
        return self.delivery_error is None


class PasswordResetWorkflow:
    """Three steps keyed by email: request a code, verify it, set a new password.

    Args:
        reset_tokens: when given, tokens minted by ``verify_code`` are kept here
            and ``update_password`` only accepts a token issued for the same
            email. Without it the token is required but not checked.
        now: UTC clock, replaceable in tests.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        codes: ResetCodeStore,
        notifier: Notifier,
        sessions: SessionStore | None = None,
        reset_tokens: ResetTokenRegistry | None = None,
        code_ttl_seconds: int = DEFAULT_CODE_TTL_SECONDS,
        now: Callable[[], datetime] = utcnow,
    ):
        self.credentials = credentials
        self.codes = codes
        self.notifier = notifier
        self.sessions = sessions
        self.reset_tokens = reset_tokens
        self.code_ttl_seconds = code_ttl_seconds
        self.now = now

    def request_code(self, email: str) -> CodeIssued:
        email = (email or "").strip()
        if not email:
            raise ValidationError("Email is required")

        if self.credentials.find_user_by_email(email) is None:
            logger.info("reset code requested for unregistered email %s", email)
            raise NotFoundError("Email is not registered")

        code = new_reset_code()
        expires_at = expires_in_seconds(self.code_ttl_seconds, self.now())

        self.codes.delete_codes_for_email(email)
        self.codes.insert_code(email, code, expires_at)
        logger.info("reset code issued for %s, expires %s", email, expires_at.isoformat())
        logger.debug("reset code for %s: %s", email, code)

        # the code stays valid even when delivery fails
        try:
            result = self.notifier.send_verification_code(email, code)
        except Exception as e:
            logger.exception("notifier raised while sending code to %s", email)
            result = DeliveryResult(success=False, error=str(e))

        if not result.success:
            logger.warning("reset code for %s not delivered: %s", email, result.error)
            return CodeIssued(
                email=email,
                code=code,
                expires_at=expires_at,
                delivery_error=DependencyError(result.error or "Email delivery failed"),
            )
        return CodeIssued(email=email, code=code, expires_at=expires_at)

    def verify_code(self, email: str, code: str) -> str:
        email = (email or "").strip()
        code = (code or "").strip()
        if not email or not code:
            raise ValidationError("Email and verification code are required")

        row = self.codes.find_active_code(email, code, self.now())
        if row is None:
            if self.codes.find_any_unused_code(email, code) is not None:
                raise ExpiredError("Verification code has expired, please request a new one")
            raise InvalidCodeError("Invalid verification code")

        if self.codes.mark_code_used(row.id) == 0:
            raise InvalidCodeError("Invalid verification code")
        logger.info("reset code verified for %s", email)

        if self.reset_tokens is not None:
            return self.reset_tokens.issue(email)
        return new_token()

    def update_password(self, email: str, reset_token: str, new_password: str, confirm_password: str) -> None:
        email = (email or "").strip()
        if not email or not reset_token or not new_password or not confirm_password:
            raise ValidationError("All fields are required")

        if new_password != confirm_password:
            raise MismatchError("Passwords do not match")

        reason = password_weakness(new_password)
        if reason:
            raise WeaknessError(reason)

        if self.reset_tokens is not None and not self.reset_tokens.consume(reset_token, email):
            raise InvalidCodeError("Invalid or used reset token")

        user = self.credentials.find_user_by_email(email)
        if user is None:
            raise NotFoundError("User does not exist")

        if self.credentials.update_password_hash(email, hash_password(new_password)) == 0:
            raise NotFoundError("User does not exist")

        logger.info("password updated for user id=%s", user.id)
        if self.sessions is not None:
            revoked = self.sessions.revoke_user(user.id)
            if revoked:
                logger.info("revoked %d session(s) for user id=%s", revoked, user.id)
