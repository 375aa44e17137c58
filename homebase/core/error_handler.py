import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from homebase.config.settings import settings
from homebase.core.exceptions import HomebaseError, InternalError

logger = logging.getLogger(__name__)


def error_response(status: int, code: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"detail": detail, "code": code})


async def homebase_error_handler(request: Request, exc: HomebaseError):
    if isinstance(exc, InternalError):
        logger.error("Internal error on %s: %s", request.url.path, exc.message)
        if settings.is_production:
            return error_response(exc.status_code, exc.code, "Internal server error")
    return error_response(exc.status_code, exc.code, exc.message)


async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return error_response(500, InternalError.default_code, "Internal server error")
    return error_response(500, InternalError.default_code, str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HomebaseError, homebase_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
