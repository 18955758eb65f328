"""Error taxonomy shared by domain services and the HTTP layer."""

from __future__ import annotations

from http import HTTPStatus


class DomainError(Exception):
    """Base class for outcomes that map onto a stable HTTP status."""

    status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """A referenced entity does not exist."""

    status_code = HTTPStatus.NOT_FOUND


class ConflictError(DomainError):
    """A uniqueness constraint or blocking business rule was hit."""

    status_code = HTTPStatus.CONFLICT


class ForbiddenError(DomainError):
    """The actor is authenticated but not allowed to do this."""

    status_code = HTTPStatus.FORBIDDEN


class UnauthorizedError(DomainError):
    """Credentials are missing, invalid or expired."""

    status_code = HTTPStatus.UNAUTHORIZED


class ValidationError(DomainError):
    """Request values are well-formed but not acceptable."""

    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
