from typing import Any, Dict, Sequence
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def format_validation_errors(errors: Sequence[Dict[str, Any]]) -> str:
    """Turn pydantic errors into one readable line, e.g.
    ``Validation error: Field required at "title"; Input should be a valid number at "lat"``.
    """
    parts = []
    for error in errors:
        # drop the "body" / "query" / "path" prefix
        location = [str(item) for item in error.get("loc", ())[1:]]
        message = error.get("msg", "Invalid value")
        parts.append(f'{message} at "{".".join(location)}"' if location else message)
    return "Validation error: " + "; ".join(parts)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = format_validation_errors(exc.errors())
    logger.warning(f"{request.method} {request.url.path} rejected: {message}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
