"""Error kinds raised by the auth and password-reset workflows.

Workflows raise these; the HTTP layer turns them into status codes in one
place (see ``msgboard.main``).
"""


class AuthError(Exception):
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "kind": self.kind}


class ValidationError(AuthError):
    status_code = 400


class ConflictError(AuthError):
    status_code = 409


class NotFoundError(AuthError):
    status_code = 404


class InvalidCredentialsError(AuthError):
    status_code = 401


class UnauthenticatedError(AuthError):
    status_code = 401


class ExpiredError(AuthError):
    status_code = 400


class InvalidCodeError(AuthError):
    status_code = 400


class MismatchError(AuthError):
    status_code = 400


class WeaknessError(AuthError):
    status_code = 400


class DependencyError(AuthError):
    """A collaborator (database, mail API) was unreachable or failed."""

    status_code = 503
