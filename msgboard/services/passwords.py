import re

from passlib.context import CryptContext

pwd = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

MIN_PASSWORD_LENGTH = 6

# verified against when no user matches, so "unknown user" costs as much as
# "wrong password"
_DUMMY_HASH = pwd.hash("dummy-password-0")


def hash_password(password: str) -> str:
    return pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd.verify(password, password_hash)


def burn_verify(password: str) -> None:
    pwd.verify(password, _DUMMY_HASH)


def password_weakness(password: str) -> str | None:
    """Return why ``password`` is too weak for a reset, or None if it is fine."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if not re.search(r"[a-zA-Z]", password):
        return "Password must contain at least one letter"
    if not re.search(r"\d", password):
        return "Password must contain at least one digit"
    return None
