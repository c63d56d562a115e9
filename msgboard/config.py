from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./msgboard.db"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    # 0 keeps sessions alive until logout or restart
    session_ttl_seconds: int = 0
    reset_code_ttl_seconds: int = 60
    expose_debug_codes: bool = False
    strict_reset_tokens: bool = False
    resend_api_key: str = ""
    mail_from: str = "Message Board <no-reply@example.com>"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        is_dev = os.getenv("ENV", "").strip() == "development"
        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url).strip(),
            cors_origins=origins or ["http://localhost:3000"],
            session_ttl_seconds=_int("SESSION_TTL_SECONDS", 0),
            reset_code_ttl_seconds=_int("RESET_CODE_TTL_SECONDS", 60),
            expose_debug_codes=_flag("EXPOSE_DEBUG_CODES", is_dev),
            strict_reset_tokens=_flag("STRICT_RESET_TOKENS"),
            resend_api_key=os.getenv("RESEND_API_KEY", "").strip(),
            mail_from=os.getenv("MAIL_FROM", cls.mail_from).strip(),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        )
