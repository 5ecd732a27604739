"""Exception handlers converting resource errors into JSON responses.

Every failure body has the shape {"error": message}; validation failures
add an "errors" list of {field, message, code}.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vibestack.routing.errors import FieldError, RequestValidationFailed, ResourceError

logger = logging.getLogger(__name__)

# Location prefixes FastAPI adds that callers don't need to see
_LOCATION_ROOTS = ("body", "query", "path")


def _field_name(loc: tuple) -> str:
    parts = list(loc)
    if parts and parts[0] in _LOCATION_ROOTS:
        parts = parts[1:]
    return ".".join(str(p) for p in parts)


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for resource errors, request validation and unhandled failures."""

    @app.exception_handler(ResourceError)
    async def resource_error_handler(request: Request, exc: ResourceError) -> JSONResponse:
        log = logger.info if exc.status_code < 500 else logger.error
        log("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        failure = RequestValidationFailed(
            [
                FieldError(field=_field_name(err.get("loc", ())), message=err.get("msg", ""), code=err.get("type", ""))
                for err in exc.errors()
            ]
        )
        logger.info("%s %s -> 400 request validation", request.method, request.url.path)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=failure.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )
