"""HTTP error envelope

Use case errors travel as ``libs.result.Error`` inside ``ClientError``;
the status code follows the error's category unless the route picks one.
"""

import logging
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error
from src.domain.errors import category_of

logger = logging.getLogger(__name__)

STATUS_BY_CATEGORY = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "UPSTREAM_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


class ClientError(Exception):
    def __init__(self, error: Error, status_code: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or status_code_for(error.code)


def status_code_for(code: str) -> int:
    return STATUS_BY_CATEGORY.get(category_of(code), status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    if exc.status_code >= 500 and exc.status_code != status.HTTP_503_SERVICE_UNAVAILABLE:
        logger.error(
            f"{request.method} {request.url.path} failed: "
            f"{exc.error.code} {exc.error.message} ({exc.error.reason})"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body("INTERNAL_ERROR", "Something went wrong, please try again later"),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error.code, exc.error.message),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg', 'invalid value')}" if field else "Invalid request parameters"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("VALIDATION_ERROR", message),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("INTERNAL_ERROR", "Something went wrong, please try again later"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
