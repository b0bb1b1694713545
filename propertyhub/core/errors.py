import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def error_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "data": None, "error": message}, headers=headers)


def first_validation_message(errors: list[Dict[str, Any]]) -> str:
    if not errors:
        return "Invalid request payload"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid value")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


def data_layer_message(exc: SQLAlchemyError) -> str:
    original = getattr(exc, "orig", None)
    return str(original) if original is not None else str(exc)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore[override]
        return error_response(400, first_validation_message(list(exc.errors())))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore[override]
        return error_response(exc.status_code, str(exc.detail or "HTTP error."), headers=getattr(exc, "headers", None))

    @app.exception_handler(SQLAlchemyError)
    async def data_layer_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:  # type: ignore[override]
        logger.error("Data layer failure on %s %s: %s", request.method, request.url.path, exc)
        return error_response(500, data_layer_message(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore[override]
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, INTERNAL_ERROR_MESSAGE)
