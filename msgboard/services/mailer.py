from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from msgboard.config import Settings

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


def verification_html(code: str, ttl_seconds: int) -> str:
    return f"""
    <div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;line-height:1.5">
      <h2 style="color:#333">Message Board - password reset code</h2>
      <p>Use the code below to reset your password:</p>
      <div style="background:#f5f5f5;padding:20px;margin:20px 0;text-align:center;font-size:24px;font-weight:bold;color:#667eea">{code}</div>
      <p>The code expires in {ttl_seconds} seconds.</p>
      <p style="color:#666;font-size:12px">If you did not ask for a password reset, ignore this email.</p>
    </div>
    """


class ResendNotifier:
    """Sends verification codes through the Resend HTTP API.

    Never raises for delivery problems; callers get a ``DeliveryResult``.
    """

    def __init__(
        self,
        api_key: str,
        mail_from: str,
        code_ttl_seconds: int = 60,
        timeout: float = 20,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.mail_from = mail_from
        self.code_ttl_seconds = code_ttl_seconds
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResendNotifier":
        return cls(settings.resend_api_key, settings.mail_from, settings.reset_code_ttl_seconds)

    def send_verification_code(self, email: str, code: str) -> DeliveryResult:
        if not self.api_key:
            return DeliveryResult(success=False, error="RESEND_API_KEY not set")

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                r = client.post(
                    RESEND_URL,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": self.mail_from,
                        "to": [email],
                        "subject": "Message Board - password reset code",
                        "html": verification_html(code, self.code_ttl_seconds),
                        "text": f"Your password reset code is {code}. It expires in {self.code_ttl_seconds} seconds.",
                    },
                )
                r.raise_for_status()
                body = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("verification email to %s failed: %s", email, e)
            return DeliveryResult(success=False, error=str(e))

        logger.info("verification email sent to %s", email)
        return DeliveryResult(success=True, message_id=body.get("id"))
