"""Error types and the uniform error envelope.

Every failure leaving the API is rendered as:

    {"success": false, "error": "Transaction not found"}

Validation problems map to 400, missing records to 404, duplicate
``id``/``code`` values to 409 and failed aggregations to 500.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from unifypay.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str, status_code: int = 500):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class ValidationError(AppError):
    """Bad input: unsupported currency, bad limit, bad file, bad reference."""

    def __init__(self, detail: str = "Validation failed"):
        super().__init__(detail=detail, status_code=400)


class NotFoundError(AppError):
    """Lookup by id or code yielded nothing."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail=detail, status_code=404)


class ConflictError(AppError):
    """A unique field already holds the submitted value."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(detail=f"{field} already exists", status_code=409)


class AggregationError(AppError):
    """A derived view (balance, statistics) could not be computed."""

    def __init__(self, detail: str = "Aggregation failed"):
        super().__init__(detail=detail, status_code=500)


def error_body(message: str) -> dict:
    return {"success": False, "error": message}


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    msg = first.get("msg", "Invalid value")
    return f"{'.'.join(loc)}: {msg}" if loc else msg


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=error_body(_format_validation_error(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            detail = "Route not found"
        else:
            detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=error_body(detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = "Something went wrong!" if settings.is_production else str(exc)
        return JSONResponse(status_code=500, content=error_body(message))
