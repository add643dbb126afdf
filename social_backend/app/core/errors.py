from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

import app.core.runtime as runtime


class AppError(Exception):
    """Base for errors that map onto an HTTP response."""

    status_code = 400
    message = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_content(self) -> dict[str, Any]:
        return {"msg": self.message}


class ValidationError(AppError):
    def __init__(self, message: str, param: str | None = None) -> None:
        self.param = param
        super().__init__(message)

    def to_content(self) -> dict[str, Any]:
        error: dict[str, Any] = {"msg": self.message}
        if self.param:
            error["param"] = self.param
        return {"errors": [error]}


class CredentialError(AppError):
    """Registration/login rejections, reported in the validation error shape."""

    def to_content(self) -> dict[str, Any]:
        return {"errors": [{"msg": self.message}]}


class UserExistsError(CredentialError):
    message = "User already exists"


class InvalidCredentialsError(CredentialError):
    message = "Invalid credentials"


class AuthError(AppError):
    status_code = 401
    message = "Token is not valid"


class MissingTokenError(AuthError):
    message = "No token, authorization denied"


class InvalidTokenError(AuthError):
    message = "Token is not valid"


class ExpiredTokenError(AuthError):
    message = "Token has expired"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class ForbiddenError(AppError):
    status_code = 401
    message = "User not authorized"


class AlreadyLikedError(AppError):
    message = "Post already liked"


class NotLikedError(AppError):
    message = "Post has not yet been liked"


class InternalError(AppError):
    status_code = 500
    message = "Server error"


class StoreFault(InternalError):
    """The document store failed; details are logged, never returned."""


class TokenSigningError(InternalError):
    pass


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    # store faults are already logged where they are raised
    if isinstance(exc, InternalError) and not isinstance(exc, StoreFault):
        logger.opt(exception=exc).error(
            "{} {} failed (user {})", request.method, request.url.path, runtime.current_user_id.get()
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({"msg": error.get("msg", "Invalid value"), "param": ".".join(loc)})
    return JSONResponse(status_code=400, content={"errors": errors})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(
        "Unhandled error on {} {} (user {})", request.method, request.url.path, runtime.current_user_id.get()
    )
    return JSONResponse(status_code=500, content={"msg": InternalError.message})


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
