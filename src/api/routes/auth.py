"""Authentication routes - signup, login, profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from src.api.deps import get_current_user, get_db_session
from src.api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    SignupRequest,
    SignupResponse,
    TokenResponse,
)
from src.api.schemas.users import UserOut
from src.core.config import get_settings
from src.domain import User
from src.domain.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="Create a new identity. The email must not be registered yet.",
)
async def signup(
    payload: SignupRequest,
    session: AsyncSession = Depends(get_db_session),
) -> SignupResponse:
    """Register a new user."""
    user = await AuthService(session).signup(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role.value,
        profile=payload.profile(),
    )
    return SignupResponse(message="User created successfully", user=UserOut.model_validate(user))


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="User login",
    description="Authenticate with email and password, returns a bearer token.",
)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    """Authenticate user and return a token."""
    user, token = await AuthService(session).login(email=payload.email, password=payload.password)
    return LoginResponse(
        message="Login successful",
        token=TokenResponse(
            access_token=token,
            expires_in=get_settings().access_token_ttl_seconds,
        ),
        user=UserOut.model_validate(user),
    )


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user",
    description="Get the currently authenticated user's profile.",
)
async def get_me(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> MeResponse:
    """Get current authenticated user's profile."""
    record = await AuthService(session).get_user(user.user_id)
    return MeResponse(user=UserOut.model_validate(record))
