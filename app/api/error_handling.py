"""
Error boundary - every failure leaves the API as

    {"success": false, "message": "...", "errors": [...]}

with the status code of its error class. Unknown exceptions become a generic
500 and are logged with their traceback, never echoed to the client.
"""

import logging

import pydantic
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.core.errors import ServiceError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, errors: list = None) -> JSONResponse:
    body = {"success": False, "message": message, "errors": errors or []}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def _field_errors(errors) -> list:
    """Compact pydantic error list: [{field, message}]."""
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "invalid value"),
        }
        for err in errors
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that map errors to status codes."""

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
        return error_response(exc.status_code, exc.message, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response(400, "Invalid request data", _field_errors(exc.errors()))

    @app.exception_handler(pydantic.ValidationError)
    async def handle_model_validation(request: Request, exc: pydantic.ValidationError):
        # Raised when a route validates form fields into a model itself
        return error_response(400, "Invalid request data", _field_errors(exc.errors()))

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return error_response(exc.status_code, message)

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.exception("Unhandled error %s %s", request.method, request.url.path)
        return error_response(500, "Internal server error")
