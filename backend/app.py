"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.v1 import api_router
from api.v1.responses import error_response, success
from core import INTERNAL_ERROR_MESSAGE, configure_logging, settings
from services.auth import IdentityIssuer, build_identity_issuer

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "Invalid value"))
    return f"{location}: {message}" if location else message


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = str(exc.detail) if exc.status_code < 500 else INTERNAL_ERROR_MESSAGE
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, _validation_message(exc))


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, INTERNAL_ERROR_MESSAGE)


def create_app(*, identity_issuer: IdentityIssuer | None = None) -> FastAPI:
    """Build the API.

    ``identity_issuer`` overrides the strategy selected by settings; tests use
    it to run the session variant against an in-memory store.
    """
    configure_logging(settings.log_level)

    application = FastAPI(title="Blog API")
    application.state.identity_issuer = identity_issuer or build_identity_issuer(settings)
    logger.info(
        "Identity strategy: %s",
        type(application.state.identity_issuer).__name__,
    )

    application.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    application.add_exception_handler(RequestValidationError, _validation_exception_handler)
    application.add_exception_handler(SQLAlchemyError, _unhandled_exception_handler)
    application.add_exception_handler(RedisError, _unhandled_exception_handler)
    application.add_exception_handler(Exception, _unhandled_exception_handler)

    application.include_router(api_router)

    @application.get("/health")
    async def health() -> dict:
        return success("ok").model_dump()

    return application
