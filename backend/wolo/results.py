# Overview: Discriminated result type returned by every store/recorder operation.

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any

from flask import current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .validation import StorageError, WoloError


@dataclass(frozen=True)
class Result:
    """
    Outcome of one store operation.

    success=True carries `data`; success=False carries `error` (message),
    `error_type` (taxonomy name) and optional `details`.
    """
    success: bool
    data: Any = None
    error: str | None = None
    error_type: str | None = None
    status_code: int = 200
    details: dict = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any = None, *, status_code: int = 200) -> "Result":
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, exc: WoloError) -> "Result":
        return cls(
            success=False,
            error=str(exc),
            error_type=exc.error_type,
            status_code=exc.status_code,
            details=dict(exc.details),
        )

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "data": self.data}
        body = {"success": False, "error": self.error, "error_type": self.error_type}
        if self.details:
            body["details"] = self.details
        return body


def returns_result(func):
    """
    Component boundary: run a service function and wrap its return value or
    taxonomy error in a Result. Storage exceptions never escape uncaught;
    the session is rolled back before the failure is reported.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Result:
        try:
            value = func(*args, **kwargs)
        except WoloError as exc:
            db.session.rollback()
            if isinstance(exc, StorageError):
                current_app.logger.error("%s failed: %s", func.__name__, exc)
            return Result.fail(exc)
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception("Storage failure in %s", func.__name__)
            details = {"detail": str(exc.orig)} if getattr(exc, "orig", None) is not None else {}
            return Result.fail(StorageError(f"Database operation failed in {func.__name__}", details))
        if isinstance(value, Result):
            return value
        return Result.ok(value)

    return wrapper


def result_response(result: Result, *, success_status: int | None = None):
    """Render a Result as a Flask JSON response."""
    body = result.to_dict()
    if not result.success and result.error_type == StorageError.error_type and not current_app.debug:
        body.pop("details", None)
    status = result.status_code
    if result.success and success_status is not None:
        status = success_status
    return jsonify(body), status
