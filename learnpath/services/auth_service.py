"""Authentication business logic."""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import jwt
from fastapi import HTTPException, status
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.auth import _get_jwt_key
from learnpath.core.config import get_settings
from learnpath.core.redis_keys import key_refresh_token, key_user_refresh_tokens
from learnpath.models.user import User, UserRole
from learnpath.services import get_redis_cache

if TYPE_CHECKING:
    import redis.asyncio as redis

logger = logging.getLogger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return _pwd_context.verify(password, password_hash)


def _get_access_exp_seconds(settings) -> int:
    return max(int(settings.JWT_ACCESS_EXPIRE_MINUTES * 60), 60)


def _get_refresh_exp_seconds(settings) -> int:
    return max(int(settings.JWT_REFRESH_EXPIRE_DAYS * 60 * 60 * 24), 60)


def build_token(subject: str, expires_in: int, extra_claims: dict | None = None) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
    }
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(
        payload,
        _get_jwt_key(settings.JWT_SECRET),
        algorithm=settings.JWT_ALGORITHM,
    )


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


async def _require_redis() -> "redis.Redis":
    cache = await get_redis_cache()
    if not cache.client:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Redis unavailable for token management",
        )
    return cache.client


async def _store_refresh_token(*, user_id: int, jti: str, token_hash: str, ttl: int) -> None:
    client = await _require_redis()
    user_key = key_user_refresh_tokens(user_id)
    async with client.pipeline(transaction=True) as pipe:
        pipe.setex(key_refresh_token(jti), ttl, token_hash)
        pipe.sadd(user_key, jti)
        pipe.expire(user_key, ttl)
        await pipe.execute()


async def revoke_user_refresh_tokens(user_id: int) -> None:
    client = await _require_redis()
    user_key = key_user_refresh_tokens(user_id)
    jtis = await client.smembers(user_key)
    if not jtis:
        await client.delete(user_key)
        return
    async with client.pipeline(transaction=True) as pipe:
        for jti in jtis:
            pipe.delete(key_refresh_token(jti))
        pipe.delete(user_key)
        await pipe.execute()


def _user_info(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role.value,
        "profile_image": user.profile_image,
    }


async def _issue_tokens(user: User) -> dict:
    settings = get_settings()
    access_token = build_token(
        user.email, _get_access_exp_seconds(settings), extra_claims={"role": user.role.value}
    )
    refresh_ttl = _get_refresh_exp_seconds(settings)
    refresh_jti = uuid.uuid4().hex
    refresh_token = build_token(
        user.email,
        refresh_ttl,
        extra_claims={"jti": refresh_jti, "uid": user.id},
    )
    await _store_refresh_token(
        user_id=user.id,
        jti=refresh_jti,
        token_hash=_hash_token(refresh_token),
        ttl=refresh_ttl,
    )
    return {
        "accessToken": access_token,
        "refreshToken": refresh_token,
        "tokenType": "Bearer",
        "expiresIn": _get_access_exp_seconds(settings),
        "user": _user_info(user),
    }


async def register_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
) -> dict:
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already registered",
        )

    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=UserRole.USER,
    )
    db.add(user)
    try:
        await db.commit()
        await db.refresh(user)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already registered",
        )

    logger.info("User registered: id=%s", user.id)
    return await _issue_tokens(user)


async def login_user(db: AsyncSession, *, email: str, password: str) -> dict:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    return await _issue_tokens(user)


async def refresh_tokens(db: AsyncSession, *, refresh_token: str) -> dict:
    settings = get_settings()
    try:
        payload = jwt.decode(
            refresh_token,
            _get_jwt_key(settings.JWT_SECRET),
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Refresh token expired",
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid refresh token",
        )

    email = payload.get("sub")
    jti = payload.get("jti")
    uid = payload.get("uid")
    if not email or not jti or uid is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid refresh token",
        )

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    try:
        uid_int = int(uid)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid refresh token",
        )
    if user.id != uid_int:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    client = await _require_redis()
    token_key = key_refresh_token(jti)
    user_key = key_user_refresh_tokens(user.id)
    stored_hash = await client.get(token_key)
    if not stored_hash or stored_hash != _hash_token(refresh_token):
        # 재사용 또는 저장소 불일치: 해당 사용자 refresh token 전부 폐기
        logger.warning("Refresh token reuse detected for user %s", user.id)
        await revoke_user_refresh_tokens(user.id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token reuse detected",
        )

    async with client.pipeline(transaction=True) as pipe:
        pipe.delete(token_key)
        pipe.srem(user_key, jti)
        await pipe.execute()
    return await _issue_tokens(user)


async def logout_user(user_id: int) -> None:
    await revoke_user_refresh_tokens(user_id)
    logger.info("User %s logged out", user_id)
