"""Authentication endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.auth import get_current_user
from learnpath.core.config import settings
from learnpath.core.database import get_db
from learnpath.core.limiter import limiter
from learnpath.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
)
from learnpath.schemas.common import success
from learnpath.services.auth_service import (
    login_user,
    logout_user,
    refresh_tokens,
    register_user,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest, db: AsyncSession = Depends(get_db)
) -> AuthResponse:
    return await register_user(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request, payload: LoginRequest, db: AsyncSession = Depends(get_db)
) -> AuthResponse:
    return await login_user(db, email=payload.email, password=payload.password)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    payload: RefreshRequest, db: AsyncSession = Depends(get_db)
) -> AuthResponse:
    if not payload.refreshToken or not payload.refreshToken.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="refreshToken is required",
        )
    return await refresh_tokens(db, refresh_token=payload.refreshToken)


@router.post("/logout")
async def logout(user: dict = Depends(get_current_user)) -> dict:
    await logout_user(user["id"])
    return success(message="Logged out")


@router.get("/me")
async def get_me(user: dict = Depends(get_current_user)) -> dict:
    return success({**user, "authenticated": True})
