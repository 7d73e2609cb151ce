"""
Response helpers.

Every response carries an explicit charset. Outcomes of the allow-list,
the resolver and the runner are turned into responses here and nowhere else.
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from .errors import MilanError
from .runner import ExecutionResult, Failure, Success, Timeout

TEXT_CONTENT_TYPE = "text/plain; charset=UTF-8"
JSON_CONTENT_TYPE = "application/json; charset=UTF-8"

UNPROCESSABLE = 422


def text(message: str, status_code: int = 200) -> Response:
    return PlainTextResponse(message, status_code=status_code, media_type=TEXT_CONTENT_TYPE)


def json(data: Any, status_code: int = 200) -> Response:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return JSONResponse(data, status_code=status_code, media_type=JSON_CONTENT_TYPE)


def ok(message: str) -> Response:
    return text(message, 200)


def from_error(exc: MilanError) -> Response:
    """Access denied, no script, invalid name, not found."""
    return text(exc.message, exc.status_code)


def internal_error(exc: BaseException) -> Response:
    message = str(exc) or type(exc).__name__
    return text(f"Execution failed: {message}", 500)


def from_result(result: ExecutionResult) -> Response:
    """200 with the output on success, 422 with the error text otherwise."""
    if isinstance(result, Success):
        return ok(result.output)
    if isinstance(result, (Failure, Timeout)):
        return text(result.error, UNPROCESSABLE)
    raise TypeError(f"Unknown execution result: {result!r}")
