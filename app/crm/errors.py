"""
Error taxonomy shared by every module.

- DataBaseError: a read/write inside a transaction failed (or a caller-supplied
  condition the store cannot serve, e.g. an over-wide search range -> 400).
- NotFoundError: the requested row or route does not exist.
- InvalidPayload: request validation failed before any transaction opened.

All of them are rendered as JSON by the handlers registered in
``register_error_handlers``.
"""

from __future__ import annotations

import traceback
from typing import TYPE_CHECKING

from flask import Flask, g, request
from werkzeug.exceptions import HTTPException

if TYPE_CHECKING:
    from app.crm.utils import ValidationError


class DataBaseError(Exception):
    def __init__(self, message: str, status: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class NotFoundError(Exception):
    status = 404

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidPayload(Exception):
    status = 422

    def __init__(self, errors: list["ValidationError"]) -> None:
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))
        self.errors = errors


def _stack(app: Flask, e: BaseException) -> list[str] | None:
    if (app.config.get("ENV") or "").lower() in ("prod", "production"):
        return None
    lines: list[str] = []
    for chunk in traceback.format_exception(type(e), e, e.__traceback__):
        lines.extend(line for line in chunk.splitlines() if line.strip())
    return lines


def _body(app: Flask, message: str, e: BaseException, **extra) -> dict:
    body = {"message": message, **extra}
    stack = _stack(app, e)
    if stack is not None:
        body["stack"] = stack
    return body


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DataBaseError)
    def _err_database(e: DataBaseError):  # type: ignore[no-redef]
        if e.status >= 500:
            app.logger.error("Database operation failed (request_id=%s): %s", getattr(g, "request_id", None), e.message)
        return _body(app, e.message, e), e.status

    @app.errorhandler(NotFoundError)
    def _err_not_found(e: NotFoundError):  # type: ignore[no-redef]
        return _body(app, e.message, e), 404

    @app.errorhandler(InvalidPayload)
    def _err_invalid(e: InvalidPayload):  # type: ignore[no-redef]
        errors = [{"field": v.field, "message": v.message} for v in e.errors]
        return _body(app, "Request validation failed.", e, errors=errors), 422

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        if e.code == 404:
            return _body(app, f"Not Found - {request.path}", e), 404
        return _body(app, e.description or e.name, e), e.code or 500

    @app.errorhandler(Exception)
    def _err_500(e: Exception):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return _body(app, "Internal Server Error", e), 500
