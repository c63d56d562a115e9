from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session as DbSession

from msgboard.database import get_db

from .auth_flow import AuthWorkflow
from .credentials import CredentialStore, ResetCodeStore
from .password_reset import PasswordResetWorkflow
from .sessions import SessionStore, SessionUser, bearer_token


def get_session_store(req: Request) -> SessionStore:
    return req.app.state.sessions


def get_token(authorization: str | None = Header(None)) -> str | None:
    return bearer_token(authorization)


def get_auth_workflow(
    db: DbSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
) -> AuthWorkflow:
    return AuthWorkflow(CredentialStore(db), sessions)


def get_reset_workflow(
    req: Request,
    db: DbSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
) -> PasswordResetWorkflow:
    state = req.app.state
    return PasswordResetWorkflow(
        credentials=CredentialStore(db),
        codes=ResetCodeStore(db),
        notifier=state.notifier,
        sessions=sessions,
        reset_tokens=state.reset_tokens,
        code_ttl_seconds=state.settings.reset_code_ttl_seconds,
    )


def get_current_user(
    token: str | None = Depends(get_token),
    sessions: SessionStore = Depends(get_session_store),
) -> SessionUser | None:
    """Logged-in user for the request, or None; never raises."""
    return sessions.resolve(token)
