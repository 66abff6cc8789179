"""
Translation of appscope's typed errors into HTTP responses.

The transport itself lives outside this package; services that mount the query
engine behind FastAPI call `register_exception_handlers(app)` so every typed
error is answered with the `{"message", "status", "result"}` envelope and the
status code from `registered_exceptions()`.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from appscope.core.exceptions import registered_exceptions
from appscope.core.root_logger import get_logger

logger = get_logger("handlers")


def error_envelope(status: int, message: str, result: object = None) -> dict:
    """Builds the response body shared by every error answer."""
    return {"message": message, "status": status, "result": result}


def log_wrapper(request: Request, exc: Exception, status: int) -> None:
    """
    Logs the failed request and the exception that ended it.

    Server-side failures are logged as errors, client mistakes as warnings.
    """
    log = logger.error if status >= 500 else logger.warning
    log(f"{request.method} {request.url} -> {status} {type(exc).__name__}: {exc}")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Registers a handler for each typed error plus pydantic validation failures.

    Args:
        app (FastAPI): The FastAPI application instance.
    """

    for exc_type, (status, default_message) in registered_exceptions().items():

        def _make_handler(status_code: int, fallback: str):
            async def handler(request: Request, exc: Exception) -> JSONResponse:
                log_wrapper(request, exc, status_code)
                # Store errors carry driver details that must not leak to clients.
                detail = fallback if status_code >= 500 else (str(exc) or fallback)
                return JSONResponse(
                    status_code=status_code,
                    content=error_envelope(status_code, type(exc).__name__, detail),
                )

            return handler

        app.add_exception_handler(exc_type, _make_handler(status, default_message))

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
        log_wrapper(request, exc, 400)
        errors = jsonable_encoder(exc.errors(include_url=False, include_context=False))
        return JSONResponse(status_code=400, content=error_envelope(400, "ValidationError", errors))

    logger.debug("Registered appscope exception handlers")
