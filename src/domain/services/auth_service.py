"""Authentication service with password hashing and identity lookup."""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Any

import structlog
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from src.core.auth import create_access_token
from src.core.config import get_settings
from src.domain.errors import ConflictError, NotFoundError, UnauthorizedError
from src.infrastructure.db.models import Availability, UserModel, UserRole

logger = structlog.get_logger()


class UserExistsError(ConflictError):
    """Raised when attempting to sign up with an existing email."""


class InvalidCredentialsError(UnauthorizedError):
    """Raised when login credentials are invalid."""


class UserNotFoundError(NotFoundError):
    """Raised when user is not found."""


@lru_cache
def get_password_context() -> CryptContext:
    """Bcrypt context; cost comes from ``BCRYPT_ROUNDS``."""
    settings = get_settings()
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return get_password_context().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return get_password_context().verify(plain_password, hashed_password)


class AuthService:
    """Service for signup, login and token issuance."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def signup(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: str = UserRole.USER.value,
        profile: dict[str, Any] | None = None,
    ) -> UserModel:
        """Create an identity. Email uniqueness is enforced by the database."""
        await logger.ainfo("signup_attempt", email=email, role=role)

        profile = dict(profile or {})
        user = UserModel(
            name=name,
            email=email.lower(),
            hashed_password=hash_password(password),
            role=UserRole(role),
            skills=profile.pop("skills", None) or [],
            availability=Availability(profile.pop("availability", Availability.AVAILABLE)),
            **{key: value for key, value in profile.items() if value is not None},
        )

        try:
            self.session.add(user)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            await logger.awarning("signup_duplicate_email", email=email)
            raise UserExistsError("User already exists. Please login to continue") from exc

        await self.session.refresh(user)
        await logger.ainfo("signup_success", user_id=user.id, email=user.email)
        return user

    async def login(self, *, email: str, password: str) -> tuple[UserModel, str]:
        """Authenticate with email and password; return the identity and a bearer token."""
        await logger.ainfo("login_attempt", email=email)

        stmt = select(UserModel).where(UserModel.email == email.lower())
        user = await self.session.scalar(stmt)

        if user is None:
            await logger.awarning("login_user_not_found", email=email)
            raise InvalidCredentialsError("Invalid email or password")

        if not verify_password(password, user.hashed_password):
            await logger.awarning("login_invalid_password", email=email)
            raise InvalidCredentialsError("Invalid email or password")

        token = self.issue_token(user)
        await logger.ainfo("login_success", user_id=user.id, email=user.email)
        return user, token

    async def get_user(self, user_id: str) -> UserModel:
        user = await self.session.get(UserModel, user_id)
        if user is None:
            raise UserNotFoundError("User not found")
        return user

    @staticmethod
    def issue_token(user: UserModel) -> str:
        settings = get_settings()
        return create_access_token(
            subject=user.id,
            roles=[user.role.value],
            email=user.email,
            expires_delta=timedelta(seconds=settings.access_token_ttl_seconds),
        )
