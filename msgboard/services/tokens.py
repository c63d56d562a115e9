import secrets
from datetime import datetime, timedelta, timezone


def new_token(nbytes: int = 32) -> str:
    # urlsafe token ~ 43 chars for 32 bytes
    return secrets.token_urlsafe(nbytes)


def new_reset_code(digits: int = 6) -> str:
    return f"{secrets.randbelow(10 ** digits):0{digits}d}"


def utcnow() -> datetime:
    # naive UTC, matching the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


def expires_in_seconds(seconds: int, now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(seconds=seconds)
