from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.actions import files, health, licenses, scripts
from core.clock import Clock
from core.config import Settings, get_settings
from core.errors import ScriptVaultError
from scriptvault import __version__

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"message": message}})


async def _handle_app_error(request: Request, exc: ScriptVaultError) -> JSONResponse:
    if not exc.public:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return _error(exc.status_code, exc.public_message)


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(400, message)


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal Server Error")


def create_app(settings: Settings | None = None, *, clock: Clock | None = None) -> FastAPI:
    """Build the API; services are created lazily on the first request."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    application = FastAPI(title="ScriptVault API", version=__version__)
    application.state.settings = settings
    application.state.clock = clock
    application.state.services = None

    application.include_router(health.router)
    application.include_router(scripts.router)
    application.include_router(licenses.router)
    application.include_router(files.router)

    application.add_exception_handler(ScriptVaultError, _handle_app_error)
    application.add_exception_handler(StarletteHTTPException, _handle_http_error)
    application.add_exception_handler(RequestValidationError, _handle_validation_error)
    application.add_exception_handler(Exception, _handle_unexpected)
    return application


app = create_app()
