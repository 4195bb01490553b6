"""Map storefront, Protean and request-validation errors onto JSON responses.

Every error body has the same shape::

    {"error": {"type": ..., "reason": ..., "message": ..., "details": ...}}
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError

from storefront.errors import Reason, StorefrontError

logger = structlog.get_logger(__name__)


def _error(status_code: int, kind: str, reason: str, message: str, details=None) -> JSONResponse:
    body = {"type": kind, "reason": reason, "message": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content={"error": body})


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, reason=exc.reason, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


async def protean_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(400, "ValidationError", Reason.VALIDATION_ERROR.value, "Invalid request", exc.messages)


async def protean_not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return _error(404, "NotFoundError", Reason.NOT_FOUND.value, str(exc) or "Not found")


async def concurrent_update_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.info("Concurrent update rejected", path=request.url.path, detail=str(exc))
    return _error(
        400,
        "ConflictError",
        Reason.INVALID_TRANSITION.value,
        "The order was changed by another request, reload it and try again",
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.setdefault(field or "body", []).append(error.get("msg", "Invalid value"))
    return _error(400, "ValidationError", Reason.VALIDATION_ERROR.value, "Invalid request", details)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(ValidationError, protean_validation_handler)
    app.add_exception_handler(ObjectNotFoundError, protean_not_found_handler)
    app.add_exception_handler(ExpectedVersionError, concurrent_update_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
