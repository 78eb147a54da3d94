"""Exception handlers: map the error taxonomy onto HTTP responses."""

from typing import Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import BackofficeError, ValidationFailed
from ..utils.logging import get_logger

logger = get_logger(__name__)

_REQUEST_LOCATIONS = ("body", "query", "path", "header", "cookie")


def request_errors_to_field_map(exc: RequestValidationError) -> Dict[str, List[str]]:
    field_map: Dict[str, List[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _REQUEST_LOCATIONS:
            loc = loc[1:]
        field = ".".join(loc) or "payload"
        field_map.setdefault(field, []).append(str(error.get("msg", "Invalid value.")))
    return field_map


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailed)
    async def _validation_failed(request: Request, exc: ValidationFailed) -> JSONResponse:
        return JSONResponse(status_code=422, content={"message": exc.message, "errors": exc.errors})

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"message": ValidationFailed.message, "errors": request_errors_to_field_map(exc)},
        )

    @app.exception_handler(BackofficeError)
    async def _backoffice_error(request: Request, exc: BackofficeError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"message": BackofficeError.message})
