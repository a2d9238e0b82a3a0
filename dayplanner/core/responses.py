from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


def create_response(
    status: str,
    message: str,
    status_code: int = 200,
    **extra: Any,
) -> JSONResponse:
    """
    Builds the JSON envelope shared by every endpoint.

    Args:
        status: "success", "error" or "info".
        message: Human readable outcome.
        status_code: HTTP status to return.
        **extra: Additional top level keys (data, user, authorization, ...).
    """
    content = {"status": status, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def validation_error_response(errors: Dict[str, List[str]]) -> JSONResponse:
    return create_response("error", "Validation failed", status_code=422, errors=errors)


def field_error(field: str, message: str) -> JSONResponse:
    return validation_error_response({field: [message]})


def format_validation_errors(errors) -> Dict[str, List[str]]:
    """Groups pydantic error entries by field name."""
    formatted: Dict[str, List[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = ".".join(loc) or "body"
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        formatted.setdefault(field, []).append(message)
    return formatted


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return validation_error_response(format_validation_errors(exc.errors()))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail: Optional[Any] = exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "message": detail},
        headers=getattr(exc, "headers", None),
    )
