"""HTTP error mapping and request logging."""
from __future__ import annotations

import json
import logging
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from haemong_backend.domain.errors import DomainError
from haemong_backend.logging_config import sanitize

logger = logging.getLogger(__name__)

_REASONS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def _request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", None)
    if rid is None:
        rid = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = rid
    return rid


def error_body(
    request: Request,
    status_code: int,
    message: Any,
    error: Optional[str] = None,
    exc: Optional[BaseException] = None,
    include_stack: bool = False,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "statusCode": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
        "method": request.method,
        "message": message,
        "error": error or _REASONS.get(status_code, "Error"),
        "requestId": _request_id(request),
    }
    if include_stack and exc is not None:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def _log_error(request: Request, status_code: int, message: Any, exc: Optional[BaseException] = None) -> None:
    context = (
        f"requestId={_request_id(request)} {request.method} {request.url.path} "
        f"query={dict(request.query_params)} body={getattr(request.state, 'sanitized_body', None)}"
    )
    if status_code >= 500:
        logger.error(f"{status_code} {message} {context}", exc_info=exc)
    else:
        logger.warning(f"{status_code} {message} {context}")


def register_error_handlers(app: FastAPI, environment: str = "development") -> None:
    include_stack = environment != "production"

    def respond(request: Request, status_code: int, message: Any, error: Optional[str] = None,
                exc: Optional[BaseException] = None) -> JSONResponse:
        _log_error(request, status_code, message, exc)
        return JSONResponse(
            status_code=status_code,
            content=error_body(request, status_code, message, error, exc, include_stack),
            headers={"X-Request-ID": _request_id(request)},
        )

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        return respond(request, exc.status_code, exc.message, exc.error, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return respond(request, exc.status_code, exc.detail, exc=exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        ]
        return respond(request, status.HTTP_400_BAD_REQUEST, details, exc=exc)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        return respond(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", exc=exc)


def register_request_logging(app: FastAPI, environment: str = "development") -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        rid = _request_id(request)
        request.state.sanitized_body = None
        if request.headers.get("content-type", "").startswith("application/json"):
            raw = await request.body()
            if raw:
                try:
                    request.state.sanitized_body = sanitize(json.loads(raw))
                except ValueError:
                    request.state.sanitized_body = "<invalid json>"

        logger.info(f"--> {request.method} {request.url.path} requestId={rid} body={request.state.sanitized_body}")
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = rid
        response.headers["X-Environment"] = environment
        logger.info(f"<-- {request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms requestId={rid}")
        return response
