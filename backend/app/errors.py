"""
Unified error envelope handlers.

Every failure on the HTTP surface renders as
``{"success": false, "message": ..., "code": ...}``. Storage failures and
unexpected exceptions are logged with their cause and answered with a
generic message.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException, RepositoryException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred processing your request"


def _envelope(
    message: str,
    *,
    code: Optional[str] = None,
    details: Optional[Any] = None,
    errors: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if code:
        body["code"] = code
    if details:
        body["details"] = jsonable_encoder(details)
    if errors is not None:
        body["errors"] = errors
    return body


def _parse_detail(detail: Any) -> tuple[str, Optional[str]]:
    if isinstance(detail, dict):
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        message = detail.get("message") or detail.get("detail")
        return (message if isinstance(message, str) else GENERIC_ERROR_MESSAGE), code
    if isinstance(detail, str):
        return detail, None
    return GENERIC_ERROR_MESSAGE, None


def _validation_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(location) or None, "message": error.get("msg", "Invalid value")})
    return errors


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"[API] {request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(exc.to_envelope(), status_code=exc.status_code)

    @app.exception_handler(RepositoryException)
    async def repository_exception_handler(
        request: Request, exc: RepositoryException
    ) -> JSONResponse:
        logger.error(f"[API] Storage failure on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            _envelope(GENERIC_ERROR_MESSAGE, code="STORAGE_FAILURE"),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            _envelope("Validation failed", code="VALIDATION_ERROR", errors=_validation_errors(exc)),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message, code = _parse_detail(exc.detail)
        return JSONResponse(
            _envelope(message, code=code),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"[API] Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            _envelope(GENERIC_ERROR_MESSAGE, code="INTERNAL_ERROR"),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
