from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .api.v1.endpoints import auth, posts, users
from .core import runtime
from .core.config import Settings, get_settings
from .core.documents import DocumentStore
from .core.errors import setup_exception_handlers
from .core.logging import setup_logging
from .core.memory_redis import AsyncMemoryRedis
from .core.security import PasswordHasher, TokenService


async def _connect_redis(settings: Settings) -> Any:
    if settings.uses_memory_store:
        logger.info("Using in-memory document store")
        return AsyncMemoryRedis()

    import redis.asyncio as redis
    from redis.exceptions import RedisError

    client = redis.from_url(settings.redis_url, decode_responses=True)
    # Opportunistic ping; the store reports faults per call
    try:
        await client.ping()
    except RedisError as e:
        logger.warning("Redis at {} not reachable yet: {}", settings.redis_url, e)
    return client


def _install(settings: Settings, client: Any) -> None:
    runtime.redis_client = client
    runtime.store = DocumentStore(client)
    runtime.token_service = TokenService(settings.jwt_secret, settings.token_expires_seconds)
    runtime.password_hasher = PasswordHasher(settings.bcrypt_rounds)


def _uninstall() -> None:
    runtime.redis_client = None
    runtime.store = None
    runtime.token_service = None
    runtime.password_hasher = None


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # type: ignore[override]
        setup_logging(settings.log_level, json_format=settings.log_json)
        if settings.uses_default_secret:
            logger.warning("JWT_SECRET not set; using the development secret")
        client = await _connect_redis(settings)
        _install(settings, client)
        try:
            yield
        finally:
            _uninstall()
            await client.aclose()

    application = FastAPI(title="Social Backend", version="0.1.0", lifespan=lifespan)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_exception_handlers(application)

    @application.get("/healthz")
    async def healthz() -> dict[str, Any]:
        status: dict[str, Any] = {"ok": True}
        if runtime.redis_client is None:
            status["redis"] = {"connected": False, "message": "redis not initialized"}
            return status
        try:
            pong = await runtime.redis_client.ping()
            status["redis"] = {"connected": bool(pong)}
        except Exception as e:  # pragma: no cover - diagnostic only
            status["redis"] = {"connected": False, "error": str(e)}
        return status

    application.include_router(users.router, prefix="/api/users", tags=["users"])
    application.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    application.include_router(posts.router, prefix="/api/posts", tags=["posts"])
    return application


app = create_app()


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
