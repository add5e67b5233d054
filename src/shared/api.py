"""Error responses shared by every router.

All failures leave the API as ``{"ok": false, "code": ..., "error": ...}``.
Configuration and infrastructure errors keep their detail in the logs and
send only a generic message.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from shared.errors import StorefrontError

logger = structlog.get_logger(__name__)


def error_body(code: str, message: str) -> dict:
    return {"ok": False, "code": code, "error": message}


def _first_message(messages) -> str:
    if isinstance(messages, dict):
        for field, errors in messages.items():
            detail = errors[0] if isinstance(errors, list | tuple) and errors else errors
            return f"{field}: {detail}"
    return str(messages)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.exposes_detail:
        logger.info("Request rejected", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.error("Request failed", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.public_message))


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    messages = exc.messages
    if isinstance(messages, dict) and "status" in messages:
        return JSONResponse(
            status_code=409,
            content=error_body("INVALID_STATE_TRANSITION", _first_message(messages)),
        )
    return JSONResponse(status_code=400, content=error_body("INVALID_REQUEST", _first_message(messages)))


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=error_body("NOT_FOUND", "Resource not found"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
