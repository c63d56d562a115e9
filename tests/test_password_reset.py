from datetime import datetime, timedelta

import pytest

from msgboard.services.credentials import CredentialStore, ResetCodeStore
from msgboard.services.errors import (
    ExpiredError,
    InvalidCodeError,
    MismatchError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
    WeaknessError,
)
from msgboard.services import password_reset
from msgboard.services.password_reset import PasswordResetWorkflow
from msgboard.services.passwords import verify_password
from msgboard.services.sessions import ResetTokenRegistry

from .conftest import Clock, FakeNotifier


@pytest.fixture
def alice(auth):
    return auth.register("alice", "a@x.com", "secret1")


@pytest.fixture
def clock():
    return Clock(datetime(2026, 1, 1, 12, 0, 0))


@pytest.fixture
def timed_reset(db, sessions, notifier, clock):
    return PasswordResetWorkflow(
        credentials=CredentialStore(db),
        codes=ResetCodeStore(db),
        notifier=notifier,
        sessions=sessions,
        now=clock,
    )


def test_request_code_issues_six_digits_and_notifies(reset, notifier, alice):
    issued = reset.request_code("a@x.com")

    assert issued.delivered
    assert len(issued.code) == 6 and issued.code.isdigit()
    assert notifier.sent == [("a@x.com", issued.code)]


def test_request_code_expiry_is_sixty_seconds(timed_reset, clock, alice):
    issued = timed_reset.request_code("a@x.com")
    assert issued.expires_at == clock.now + timedelta(seconds=60)


def test_request_code_unregistered_email(reset):
    with pytest.raises(NotFoundError):
        reset.request_code("ghost@x.com")


def test_request_code_requires_email(reset):
    with pytest.raises(ValidationError):
        reset.request_code("  ")


def test_delivery_failure_keeps_code_usable(db, sessions, alice):
    flaky = PasswordResetWorkflow(
        credentials=CredentialStore(db),
        codes=ResetCodeStore(db),
        notifier=FakeNotifier(fail=True),
        sessions=sessions,
    )
    issued = flaky.request_code("a@x.com")

    assert not issued.delivered
    assert issued.delivery_error.kind == "DependencyError"
    assert "smtp down" in issued.delivery_error.message
    assert flaky.verify_code("a@x.com", issued.code)


def test_notifier_exception_is_not_escalated(db, alice):
    class Exploding:
        def send_verification_code(self, email, code):
            raise RuntimeError("boom")

    wf = PasswordResetWorkflow(CredentialStore(db), ResetCodeStore(db), Exploding())
    issued = wf.request_code("a@x.com")
    assert not issued.delivered
    assert wf.verify_code("a@x.com", issued.code)


def test_code_is_single_use(reset, alice):
    code = reset.request_code("a@x.com").code

    assert reset.verify_code("a@x.com", code)
    with pytest.raises(InvalidCodeError):
        reset.verify_code("a@x.com", code)


def test_new_code_invalidates_old_one(reset, alice, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr(password_reset, "new_reset_code", lambda: next(codes))

    first = reset.request_code("a@x.com").code
    second = reset.request_code("a@x.com").code
    assert (first, second) == ("111111", "222222")

    with pytest.raises(InvalidCodeError):
        reset.verify_code("a@x.com", first)
    assert reset.verify_code("a@x.com", second)


def test_expired_code(timed_reset, clock, alice):
    code = timed_reset.request_code("a@x.com").code
    clock.now += timedelta(seconds=61)

    with pytest.raises(ExpiredError):
        timed_reset.verify_code("a@x.com", code)


def test_code_just_before_expiry_still_works(timed_reset, clock, alice):
    code = timed_reset.request_code("a@x.com").code
    clock.now += timedelta(seconds=59)
    assert timed_reset.verify_code("a@x.com", code)


def test_wrong_code_or_email(reset, alice):
    code = reset.request_code("a@x.com").code
    wrong = f"{(int(code) + 1) % 1000000:06d}"

    with pytest.raises(InvalidCodeError):
        reset.verify_code("a@x.com", wrong)
    with pytest.raises(InvalidCodeError):
        reset.verify_code("b@x.com", code)


def test_verify_requires_fields(reset):
    with pytest.raises(ValidationError):
        reset.verify_code("a@x.com", "")


def test_update_password_full_flow(reset, auth, db, alice):
    code = reset.request_code("a@x.com").code
    token = reset.verify_code("a@x.com", code)

    reset.update_password("a@x.com", token, "newpass1", "newpass1")

    user = CredentialStore(db).find_user_by_email("a@x.com")
    db.refresh(user)
    assert verify_password("newpass1", user.password_hash)
    assert auth.login("alice", "newpass1").user.id == alice


def test_update_password_revokes_sessions(reset, auth, alice):
    token = auth.login("alice", "secret1").token
    reset.update_password("a@x.com", "anything", "newpass1", "newpass1")

    with pytest.raises(UnauthenticatedError):
        auth.verify_token(token)


def test_update_password_weakness(reset, alice):
    with pytest.raises(WeaknessError):
        reset.update_password("a@x.com", "t", "abc", "abc")
    with pytest.raises(WeaknessError):
        reset.update_password("a@x.com", "t", "abcdefg", "abcdefg")
    with pytest.raises(WeaknessError):
        reset.update_password("a@x.com", "t", "1234567", "1234567")


def test_update_password_mismatch(reset, alice):
    with pytest.raises(MismatchError):
        reset.update_password("a@x.com", "t", "abcdef", "abcdeg")


def test_update_password_missing_fields(reset):
    with pytest.raises(ValidationError):
        reset.update_password("a@x.com", "", "newpass1", "newpass1")


def test_update_password_unknown_user(reset):
    with pytest.raises(NotFoundError):
        reset.update_password("ghost@x.com", "t", "newpass1", "newpass1")


def test_reset_token_not_checked_by_default(reset, alice):
    reset.update_password("a@x.com", "made-up-token", "newpass1", "newpass1")


def test_strict_reset_tokens(db, notifier, alice):
    wf = PasswordResetWorkflow(
        CredentialStore(db),
        ResetCodeStore(db),
        notifier,
        reset_tokens=ResetTokenRegistry(),
    )
    with pytest.raises(InvalidCodeError):
        wf.update_password("a@x.com", "made-up-token", "newpass1", "newpass1")

    token = wf.verify_code("a@x.com", wf.request_code("a@x.com").code)
    wf.update_password("a@x.com", token, "newpass1", "newpass1")
    with pytest.raises(InvalidCodeError):
        wf.update_password("a@x.com", token, "newpass2", "newpass2")


def test_mark_code_used_consumes_once(db, reset, alice):
    code = reset.request_code("a@x.com").code
    row = ResetCodeStore(db).find_any_unused_code("a@x.com", code)

    assert reset.codes.mark_code_used(row.id) == 1
    assert reset.codes.mark_code_used(row.id) == 0


def test_interleaved_verifications_mint_one_token(reset, alice, monkeypatch):
    code = reset.request_code("a@x.com").code
    lookup = reset.codes.find_active_code
    tokens = []

    def lookup_then_race(email, code, now):
        row = lookup(email, code, now)
        # a second request verifies the same code between lookup and consume
        monkeypatch.setattr(reset.codes, "find_active_code", lookup)
        tokens.append(reset.verify_code(email, code))
        return row

    monkeypatch.setattr(reset.codes, "find_active_code", lookup_then_race)

    with pytest.raises(InvalidCodeError):
        reset.verify_code("a@x.com", code)
    assert len(tokens) == 1
