from __future__ import annotations

import os
from functools import lru_cache
from typing import Iterable

from pydantic import BaseModel, ConfigDict, SecretStr


DEFAULT_JWT_SECRET = "dev-secret-change-me"
DEFAULT_TOKEN_EXPIRES_SECONDS = 360000  # 100 hours
DEFAULT_BCRYPT_ROUNDS = 10


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    jwt_secret: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    token_expires_seconds: int = DEFAULT_TOKEN_EXPIRES_SECONDS
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    redis_url: str = "redis://localhost:6379/0"
    use_fake_redis: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret.get_secret_value() == DEFAULT_JWT_SECRET

    @property
    def uses_memory_store(self) -> bool:
        return (
            self.use_fake_redis
            or self.redis_url.startswith("memory://")
            or self.redis_url.startswith("redis+fake://")
        )


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_flag(name: str) -> bool:
    return os.getenv(name, "0") == "1"


def _split_origins(value: str) -> list[str]:
    parts: Iterable[str] = (o.strip() for o in value.split(","))
    return [o for o in parts if o]


def load_settings() -> Settings:
    """Read process configuration from the environment."""
    return Settings(
        jwt_secret=SecretStr(os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)),
        token_expires_seconds=_env_int("TOKEN_EXPIRES_SECONDS", DEFAULT_TOKEN_EXPIRES_SECONDS),
        bcrypt_rounds=_env_int("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS),
        redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        use_fake_redis=_env_flag("USE_FAKE_REDIS"),
        cors_origins=_split_origins(os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_json=_env_flag("LOG_JSON"),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
