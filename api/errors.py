"""
Error mapping for the API.

Request validation failures become 400, storage failures become 500
(or 503 when the pool is exhausted), and anything uncaught becomes a
generic 500.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)


def database_error(route: str, exc: SQLAlchemyError) -> HTTPException:
    """
    Log a storage failure and build the HTTP error for it.

    Must be called from inside the `except` block so the traceback is logged.
    """
    if isinstance(exc, PoolTimeoutError):
        logger.error(f"{route}: connection pool exhausted: {exc}")
        return HTTPException(status_code=503, detail="Database busy, try again later")

    logger.exception(f"{route} error")
    # The DBAPI message, without SQLAlchemy's statement and parameter dump
    message = str(getattr(exc, "orig", None) or exc)
    return HTTPException(status_code=500, detail=f"Database error: {message}")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors: 400 instead of FastAPI's 422"""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "Invalid request body", "errors": errors})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
