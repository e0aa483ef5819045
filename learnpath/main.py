"""FastAPI application entry point."""

import logging
import traceback
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnpath.api.routes import (
    auth,
    daily_plans,
    health,
    interviews,
    learning_plans,
    quizzes,
    resources,
)
from learnpath.core.config import DEFAULT_JWT_SECRET, settings
from learnpath.core.limiter import limiter
from learnpath.core.logging import setup_logging
from learnpath.middleware.rate_limit import RateLimitMiddleware
from learnpath.services import close_redis_cache, get_redis_cache

# --- 구조화된 로깅 설정 ---
setup_logging(
    level="DEBUG" if settings.DEBUG else "INFO",
    json_format=not settings.DEBUG,
)
logger = logging.getLogger("learnpath.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting %s v%s ...", settings.APP_NAME, settings.APP_VERSION)

    # JWT_SECRET 기본값/빈값 거부: 프로덕션 보안 필수
    if not settings.JWT_SECRET or settings.JWT_SECRET == DEFAULT_JWT_SECRET:
        raise RuntimeError(
            "JWT_SECRET이 기본값입니다. .env에서 반드시 변경하세요. "
            "생성 명령: openssl rand -hex 32"
        )

    redis_cache = await get_redis_cache()
    if redis_cache.client:
        logger.info("Redis connected")
    else:
        logger.warning("Redis not available (token refresh and rate limiting disabled)")
    yield
    # Shutdown
    await close_redis_cache()
    logger.info("%s shutting down...", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="LearnPath API - structured interview preparation plans",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Rate Limiter 등록 ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# --- 글로벌 예외 핸들러 ---
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """처리되지 않은 예외를 안전한 JSON 응답으로 변환 (민감 정보 노출 방지)."""
    error_id = uuid.uuid4().hex[:12]
    logger.error(
        "Unhandled exception [error_id=%s] %s %s: %s\n%s",
        error_id,
        request.method,
        request.url.path,
        exc,
        traceback.format_exc(),
    )
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "Internal server error",
            "error": {
                "code": "internal_error",
                "error_id": error_id,
                "detail": "An unexpected error occurred. Please contact support with the error_id.",
            },
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP 예외를 전역 에러 포맷으로 변환."""
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("message") or detail.get("error") or "Request failed"
        error = {k: v for k, v in detail.items() if k != "message"}
    else:
        message = str(detail) if detail else "Request failed"
        error = None
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "message": message,
            "error": error,
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """요청 유효성 검사 오류를 구조화된 JSON 응답으로 반환."""
    logger.warning(
        "Validation error %s %s: %s",
        request.method,
        request.url.path,
        exc.errors(),
    )
    return JSONResponse(
        status_code=422,
        content={
            "status": "error",
            "message": "Validation error",
            "error": {
                "code": "validation_error",
                "detail": [
                    {
                        "loc": list(err.get("loc", [])),
                        "msg": err.get("msg", ""),
                        "type": err.get("type", ""),
                    }
                    for err in exc.errors()
                ],
            },
        },
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- 슬라이딩 윈도우 레이트리밋 (사용자 또는 IP 단위) ---
if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(
        RateLimitMiddleware,
        limit=settings.RATE_LIMIT_PER_MINUTE,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )


for _module in (health, auth, resources, learning_plans, daily_plans, quizzes, interviews):
    app.include_router(_module.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "learnpath.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
