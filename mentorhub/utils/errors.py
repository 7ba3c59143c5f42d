"""
Error taxonomy shared by the lifecycle, archive and ledger services.

Services raise these; routers translate them into ``HTTPException`` with the
carried ``status_code`` (see ``to_http_exception``).
"""

from fastapi import HTTPException


class MentorHubError(Exception):
    """Base class for every domain error."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(MentorHubError):
    status_code = 400


class Unauthorized(MentorHubError):
    status_code = 401


class Forbidden(MentorHubError):
    status_code = 403


class NotFound(MentorHubError):
    status_code = 404


class InvalidState(MentorHubError):
    status_code = 400


class InvalidMentor(MentorHubError):
    status_code = 400


class DuplicateRating(MentorHubError):
    status_code = 400


class MentorMismatch(MentorHubError):
    status_code = 400


class DependencyFailure(MentorHubError):
    """Secondary effect failed (statistics, broadcast). Logged, never surfaced."""

    status_code = 500


def to_http_exception(exc: MentorHubError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
