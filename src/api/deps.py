from __future__ import annotations

from collections.abc import AsyncIterator, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from src.core.auth import Role, TokenError, create_access_token, decode_access_token
from src.domain import User
from src.domain.policy import Action, can
from src.infrastructure.db.models import UserModel
from src.infrastructure.db.session import get_session

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Provide an async SQLAlchemy session for API handlers."""
    async for session in get_session():
        yield session


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
    session: AsyncSession = Depends(get_db_session),  # noqa: B008
) -> User:
    """Resolve the authenticated user from a bearer token.

    The token only identifies the caller; the role used for authorization is
    read from the stored identity so role changes take effect immediately.
    """
    if credentials is None:
        raise _unauthorized("Missing bearer token")

    try:
        payload = decode_access_token(credentials.credentials)
    except TokenError as exc:
        raise _unauthorized(str(exc)) from exc

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Token missing subject")

    record = await session.get(UserModel, user_id)
    if record is None:
        raise _unauthorized("User no longer exists")

    return User(user_id=record.id, email=record.email, role=record.role.value, name=record.name)


def require_action(action: Action) -> Callable[[User], User]:
    """Dependency factory enforcing the role part of the access policy for ``action``.

    Ownership exceptions need the target resource, so handlers whose action has
    one authorize inside the service instead.
    """

    def dependency(user: User = Depends(get_current_user)) -> User:  # noqa: B008
        if not can(user, action):
            raise _forbidden("You don't have permission to perform this action")
        return user

    return dependency


def issue_smoke_token(user_id: str, *, role: Role, email: str | None = None) -> str:
    """Generate a signed token for manual smoke testing."""
    return create_access_token(user_id, roles=[role.value], email=email)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
