"""Redis 키 스키마 (네임스페이스 {env}:{module}:...)."""

import os

ENV = os.getenv("ENV", "dev")


def key_refresh_token(jti: str) -> str:
    return f"{ENV}:auth:rt:{jti}"


def key_user_refresh_tokens(user_id: int) -> str:
    return f"{ENV}:auth:rt:uid:{user_id}"


def key_rate_limit(scope: str, identifier: str) -> str:
    return f"{ENV}:rl:{scope}:{identifier}"
