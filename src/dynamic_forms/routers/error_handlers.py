"""Conversion of exceptions into the JSON response envelope"""

import logging
from typing import Mapping, Optional, Set

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from dynamic_forms.config import is_development
from dynamic_forms.exceptions import FormsAPIError, StorageConnectionError

logger = logging.getLogger(__name__)

GENERIC_ERROR_DETAIL = "Something went wrong"


def error_response(
    status_code: int,
    message: str,
    error: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def internal_error_response(
    exc: Exception, message: str = "Internal server error"
) -> JSONResponse:
    """500 envelope; the exception text is only exposed in development"""
    error = str(exc) if is_development() else GENERIC_ERROR_DETAIL
    return error_response(500, message, error=error)


async def forms_api_error_handler(request: Request, exc: FormsAPIError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return internal_error_response(exc, message=exc.message)
    return error_response(exc.status_code, exc.message)


async def operational_error_handler(request: Request, exc: OperationalError):
    logger.error(f"Database unavailable during {request.method} {request.url.path}: {exc}")
    return internal_error_response(exc, message=StorageConnectionError().message)


def allowed_methods(request: Request) -> Set[str]:
    """Methods of every route whose path matches the request"""
    methods: Set[str] = set()
    for route in request.app.router.routes:
        route_methods = getattr(route, "methods", None)
        if not route_methods:
            continue
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            methods.update(route_methods)
    return methods


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    headers = exc.headers
    if exc.status_code == 404:
        message = "Route not found"
    elif exc.status_code == 405:
        message = f"Method {request.method} not allowed"
        # The router only reports the first matching route's methods
        methods = allowed_methods(request)
        if methods:
            headers = {"Allow": ", ".join(sorted(methods))}
    else:
        message = str(exc.detail)
    return error_response(exc.status_code, message, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        problems.append(f"{location}: {item.get('msg')}")
    return error_response(400, f"Invalid request: {'; '.join(problems)}")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FormsAPIError, forms_api_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
